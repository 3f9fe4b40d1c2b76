from .access_policy import (
    can_create,
    can_grant,
    clamp_grant,
    ensure_any_grant,
    ensure_can_create,
    ensure_multi_user_access,
    has_any_grant,
    has_multi_user_access,
)

__all__ = [
    "can_create",
    "can_grant",
    "clamp_grant",
    "ensure_any_grant",
    "ensure_can_create",
    "ensure_multi_user_access",
    "has_any_grant",
    "has_multi_user_access",
]
