"""Neo-Access - permission-scoped sub-user directory.

Lets an owner account provision a small number of sub-users, each paired
with an identity provider registration and a capability set, and gates
their logins on the directory record.

Logging is not configured on import; applications call ``setup_logging()``.
"""

from .__version__ import __version__

from .config import (
    AccessSettings,
    Capability,
    SubscriptionTier,
    SubUserStatus,
    get_settings,
    setup_logging,
)

from .core.exceptions import (
    AccessControlError,
    DirectoryError,
    PolicyError,
    ProvisionerConsistencyError,
    RejectionReason,
    SessionRejected,
    SubUserNotFound,
    ValidationError,
)

from .features.accounts import OwnerAccount, OwnerAccountRepository
from .features.directory import SubUser, SubUserProfile, SubUserUpdate, UserDirectoryStore
from .features.management import DirectoryStats, UserManagementPanel
from .features.permissions import PermissionSet
from .features.provisioning import (
    AccountProvisioner,
    DeletionResult,
    OrphanLedger,
    PasswordResetResult,
    generate_password,
)
from .features.sessions import LoginAttempt, OwnerSession, SessionGate, SessionState, SubUserSession
from .factory import AccessServices, build_access_services

__all__ = [
    "__version__",

    # Configuration
    "AccessSettings",
    "Capability",
    "SubscriptionTier",
    "SubUserStatus",
    "get_settings",
    "setup_logging",

    # Exceptions
    "AccessControlError",
    "DirectoryError",
    "PolicyError",
    "ProvisionerConsistencyError",
    "RejectionReason",
    "SessionRejected",
    "SubUserNotFound",
    "ValidationError",

    # Features
    "AccountProvisioner",
    "DeletionResult",
    "DirectoryStats",
    "LoginAttempt",
    "OrphanLedger",
    "OwnerAccount",
    "OwnerAccountRepository",
    "OwnerSession",
    "PasswordResetResult",
    "PermissionSet",
    "SessionGate",
    "SessionState",
    "SubUser",
    "SubUserProfile",
    "SubUserSession",
    "SubUserUpdate",
    "UserDirectoryStore",
    "UserManagementPanel",
    "generate_password",

    # Wiring
    "AccessServices",
    "build_access_services",
]
