"""Session entities."""

from .protocols import PermissionCache
from .session import LoginAttempt, OwnerSession, Session, SessionState, SubUserSession

__all__ = [
    "LoginAttempt",
    "OwnerSession",
    "PermissionCache",
    "Session",
    "SessionState",
    "SubUserSession",
]
