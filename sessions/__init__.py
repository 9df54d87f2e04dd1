"""Session hosting for concurrent Nine Men's Morris games."""

from .config import SessionConfig, DEFAULT_SESSION_CONFIG

from .store import Session, SessionStore

__all__ = [
    "SessionConfig",
    "DEFAULT_SESSION_CONFIG",
    "Session",
    "SessionStore",
]
