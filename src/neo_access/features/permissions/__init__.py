"""Permission sets and the access policy."""

from .entities import PermissionSet
from .services import (
    can_create,
    can_grant,
    clamp_grant,
    has_any_grant,
    has_multi_user_access,
)

__all__ = [
    "PermissionSet",
    "can_create",
    "can_grant",
    "clamp_grant",
    "has_any_grant",
    "has_multi_user_access",
]
