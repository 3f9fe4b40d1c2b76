"""Owner and sub-user sessions."""

from .adapters import LocalPermissionCache, RedisPermissionCache
from .entities import (
    LoginAttempt,
    OwnerSession,
    PermissionCache,
    Session,
    SessionState,
    SubUserSession,
)
from .services import SessionGate

__all__ = [
    "LocalPermissionCache",
    "LoginAttempt",
    "OwnerSession",
    "PermissionCache",
    "RedisPermissionCache",
    "Session",
    "SessionGate",
    "SessionState",
    "SubUserSession",
]
