"""Exception hierarchy for neo-access."""

from .base import AccessControlError
from .access import (
    DirectoryError,
    PolicyError,
    ProvisionerConsistencyError,
    RejectionReason,
    SessionRejected,
    SubUserNotFound,
    ValidationError,
)
from .collaborators import (
    DocumentNotFound,
    DocumentStoreError,
    EmailInUse,
    IdentityNotFound,
    IdentityProviderError,
    IdentityProviderUnavailable,
    PermissionCacheError,
    InvalidCredentials,
    RevocationUnsupported,
    RotationUnsupported,
    TooManyAttempts,
    WeakPassword,
)

__all__ = [
    "AccessControlError",

    # Directory, policy, provisioning, sessions
    "DirectoryError",
    "PolicyError",
    "ProvisionerConsistencyError",
    "RejectionReason",
    "SessionRejected",
    "SubUserNotFound",
    "ValidationError",

    # Collaborators
    "DocumentNotFound",
    "DocumentStoreError",
    "EmailInUse",
    "IdentityNotFound",
    "IdentityProviderError",
    "IdentityProviderUnavailable",
    "PermissionCacheError",
    "InvalidCredentials",
    "RevocationUnsupported",
    "RotationUnsupported",
    "TooManyAttempts",
    "WeakPassword",
]
