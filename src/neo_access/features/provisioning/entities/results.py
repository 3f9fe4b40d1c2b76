"""Provisioning operation results."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ....core.value_objects import CredentialId, SubUserId


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of removing a sub-user.

    The directory record is gone whenever a result is returned; the identity
    registration may survive when the provider could not revoke it.
    """

    sub_user_id: SubUserId
    removed: bool
    credential_id: Optional[CredentialId] = None
    identity_revoked: bool = False
    revocation_error: Optional[str] = None

    @property
    def orphaned_identity(self) -> bool:
        """Check if an identity registration outlived its directory record."""
        return self.removed and self.credential_id is not None and not self.identity_revoked


@dataclass(frozen=True)
class PasswordResetResult:
    """Outcome of an owner-initiated password reset.

    ``degraded`` means the provider could not rotate the password from this
    process: the reset was recorded but the sub-user's old password still
    works until it is changed out of band.
    """

    sub_user_id: SubUserId
    reset_at: datetime
    rotated: bool

    @property
    def degraded(self) -> bool:
        return not self.rotated
