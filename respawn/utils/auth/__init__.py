"""Authentication utilities."""

from .token_store import SessionTokenStore, ReadWriteLock
from .dependencies import get_current_user, get_session_token, get_token_store, oauth2_scheme

__all__ = [
    "SessionTokenStore",
    "ReadWriteLock",
    "get_current_user",
    "get_session_token",
    "get_token_store",
    "oauth2_scheme",
]
