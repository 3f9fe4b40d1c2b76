"""Configuration module for neo-access."""

from .constants import (
    Capability,
    Collections,
    Limits,
    OWNER_FIELD,
    SubscriptionTier,
    SubUserRole,
    SubUserStatus,
)
from .logging_config import (
    LogFormat,
    LoggingConfig,
    LogVerbosity,
    get_logger,
    mask_email,
    setup_logging,
)
from .settings import AccessSettings, get_settings

__all__ = [
    # Constants
    "Capability",
    "Collections",
    "Limits",
    "OWNER_FIELD",
    "SubscriptionTier",
    "SubUserRole",
    "SubUserStatus",

    # Logging
    "LogFormat",
    "LoggingConfig",
    "LogVerbosity",
    "get_logger",
    "mask_email",
    "setup_logging",

    # Settings
    "AccessSettings",
    "get_settings",
]
