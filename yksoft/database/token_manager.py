"""
Named tokens stored in a token directory.

Each token is one record file (see token_file.py) named after the token,
by default under ~/.yksoft. This is the surface the CLI and the HTTP API
use: create / load / save / delete / list, plus emit_otp() and
registration_text() on a loaded handle.

Callers must serialize emit_otp() + save_token() per token name.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from yksoft import config
from yksoft.common.log_handler import log
from yksoft.core.clock import Clock
from yksoft.core.entropy import EntropySource
from yksoft.core.errors import InvalidTokenName, PersistenceIOFailure, TokenExists, TokenNotFound
from yksoft.core.otp_core import SoftToken

from .token_file import read_token_file, write_token_file


@dataclass
class TokenHandle:
    name: str
    path: str
    token: SoftToken


@dataclass
class TokenOverrides:
    """Identity to import instead of generating it (see SoftToken.new_with_options)."""

    public_id: Optional[bytes] = None
    private_id: Optional[bytes] = None
    aes_key: Optional[bytes] = None
    counter: int = 0


def get_token_dir(token_dir: Optional[str] = None) -> str:
    return token_dir if token_dir else config.TOKEN_DIR


def get_token_path(name: str, token_dir: Optional[str] = None) -> str:
    """
    Map a token name to its record path; an empty name means the default token.

    Raises:
        InvalidTokenName: name contains a path separator or starts with '.'
    """
    name = (name or "").strip() or config.DEFAULT_TOKEN_NAME
    if name.startswith(".") or "/" in name or "\\" in name or os.sep in name or "\x00" in name:
        raise InvalidTokenName(f"invalid token name {name!r}")
    return os.path.join(get_token_dir(token_dir), name)


def _name_from_path(path: str) -> str:
    return os.path.basename(path)


def create_token(
    name: str = "",
    overrides: Optional[TokenOverrides] = None,
    token_dir: Optional[str] = None,
    clock: Optional[Clock] = None,
    entropy: Optional[EntropySource] = None,
) -> TokenHandle:
    """
    Create a token in memory. Nothing is written until save_token().

    Raises:
        TokenExists: a record with that name is already stored
        InvalidTokenName / InvalidLength / CounterExhausted
    """
    path = get_token_path(name, token_dir)
    if os.path.exists(path):
        raise TokenExists(f"Token '{_name_from_path(path)}' already exists")

    if overrides is None:
        token = SoftToken.new(clock=clock, entropy=entropy)
    else:
        token = SoftToken.new_with_options(
            public_id=overrides.public_id,
            private_id=overrides.private_id,
            aes_key=overrides.aes_key,
            counter=overrides.counter,
            clock=clock,
            entropy=entropy,
        )
    return TokenHandle(name=_name_from_path(path), path=path, token=token)


def load_token(name: str = "", token_dir: Optional[str] = None, clock: Optional[Clock] = None) -> TokenHandle:
    """
    Raises:
        TokenNotFound: no such token
        ClockRollback: the record was last used in the future
        InvalidEncoding: the record is corrupt
        PersistenceIOFailure: other filesystem errors
    """
    path = get_token_path(name, token_dir)
    return TokenHandle(name=_name_from_path(path), path=path, token=read_token_file(path, clock=clock))


def save_token(handle: TokenHandle) -> None:
    write_token_file(handle.path, handle.token)


def delete_token(name: str, token_dir: Optional[str] = None) -> None:
    path = get_token_path(name, token_dir)
    try:
        os.remove(path)
    except FileNotFoundError as e:
        raise TokenNotFound.from_os_error(e, path) from e
    except OSError as e:
        raise PersistenceIOFailure.from_os_error(e, path) from e
    log.info(f"Deleted token '{_name_from_path(path)}'")


def list_tokens(token_dir: Optional[str] = None) -> List[str]:
    """Sorted names of the stored tokens; hidden files are skipped."""
    directory = get_token_dir(token_dir)
    try:
        with os.scandir(directory) as entries:
            return sorted(
                entry.name for entry in entries
                if entry.is_file() and not entry.name.startswith(".")
            )
    except FileNotFoundError:
        return []
    except OSError as e:
        raise PersistenceIOFailure.from_os_error(e, directory) from e


def emit_otp(handle: TokenHandle) -> Tuple[str, bool]:
    """
    Emit the next OTP of a loaded token.

    Returns:
        (otp, must_persist): must_persist is always True. Save the handle
        before showing the OTP to anyone, and drop the OTP if saving fails.
    """
    return handle.token.generate_otp(), True


def registration_text(handle: TokenHandle) -> str:
    return handle.token.registration_info()
