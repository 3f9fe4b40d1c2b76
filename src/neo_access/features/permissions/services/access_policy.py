"""Access policy decisions.

Pure functions over directory size, plan limits and requested permissions.
Nothing here performs I/O; the ``ensure_*`` variants raise instead of
returning False so services can gate operations in one line.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ....config.constants import Capability, SubscriptionTier
from ....core.exceptions import PolicyError, ValidationError
from ..entities.permission_set import PermissionSet

if TYPE_CHECKING:
    from ...accounts.entities.owner_account import OwnerAccount

logger = logging.getLogger(__name__)


def can_create(current_count: int, max_users: int) -> bool:
    """True iff another sub-user fits under the plan limit."""
    return current_count < max_users


def can_grant(requested: PermissionSet, is_owner_context: bool) -> bool:
    """True iff the settings flag is unset or the request comes from an owner-only path."""
    return not requested.settings or is_owner_context


def has_any_grant(permissions: PermissionSet) -> bool:
    """True iff at least one non-settings capability is granted."""
    return any(
        permissions.allows(capability)
        for capability in Capability
        if capability is not Capability.SETTINGS
    )


def clamp_grant(requested: PermissionSet) -> PermissionSet:
    """Force the settings flag off for sub-user mutation paths.

    Setting the flag is not an error: it is silently cleared.
    """
    if can_grant(requested, is_owner_context=False):
        return requested
    logger.debug("Clearing settings grant requested on a sub-user mutation path")
    return requested.without_settings()


def has_multi_user_access(account: "OwnerAccount", now: datetime) -> bool:
    """True iff the account holds an unexpired PRO subscription."""
    if account.subscription != SubscriptionTier.PRO:
        return False
    return account.expires_at is not None and account.expires_at > now


def ensure_can_create(current_count: int, max_users: int) -> None:
    if not can_create(current_count, max_users):
        raise PolicyError(
            f"Sub-user limit reached ({current_count}/{max_users})",
            rule="max_users",
            current_count=current_count,
            max_users=max_users,
        )


def ensure_any_grant(permissions: PermissionSet) -> None:
    if not has_any_grant(permissions):
        raise ValidationError(
            "Grant at least one permission to this user",
            field="permissions",
        )


def ensure_multi_user_access(account: "OwnerAccount", now: datetime) -> None:
    if not has_multi_user_access(account, now):
        raise PolicyError(
            "Multi-user management requires an active PRO subscription",
            rule="subscription",
            account_id=account.id,
            subscription=account.subscription.value,
        )
