"""Authentication and session persistence."""

from .service import AuthService
from .guard import AuthGuard, require_auth
from .store import SessionStore, EncryptedSessionStore, CorruptSessionError, create_session_store

__all__ = [
    "AuthService",
    "AuthGuard",
    "require_auth",
    "SessionStore",
    "EncryptedSessionStore",
    "CorruptSessionError",
    "create_session_store",
]
