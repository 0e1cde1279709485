"""
BACKEND PACKAGE

HTTP API over the soft token manager, using Flask.
"""

from .app import app

__all__ = ['app']
