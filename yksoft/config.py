"""
Runtime configuration.

Values are module-level constants; each can be overridden through the
environment (or a .env file in the working directory, loaded with
python-dotenv).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# --- Config / constants ----------------------------------------------------
TOKEN_DIR = os.path.expanduser(os.getenv("YKSOFT_TOKEN_DIR", os.path.join("~", ".yksoft")))
DEFAULT_TOKEN_NAME = os.getenv("YKSOFT_DEFAULT_TOKEN", "default")
TOKEN_DIR_MODE = 0o700
TOKEN_FILE_MODE = 0o600

API_HOST = os.getenv("YKSOFT_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("YKSOFT_API_PORT", "5000"))

LOG_LEVEL = os.getenv("YKSOFT_LOG_LEVEL", "WARNING").upper()
