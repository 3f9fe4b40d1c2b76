"""Constants and enums for neo-access.

Values here are stored verbatim in directory documents, so renaming a member
value is a data migration.
"""

from enum import Enum


class Capability(str, Enum):
    """Product areas a sub-user can be granted."""

    INVOICES = "invoices"
    QUOTES = "quotes"
    CLIENTS = "clients"
    PRODUCTS = "products"
    STOCK_MANAGEMENT = "stock_management"
    REPORTS = "reports"
    HR_MANAGEMENT = "hr_management"
    SETTINGS = "settings"  # owner only, never granted explicitly


class SubUserStatus(str, Enum):
    """Sub-user account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class SubUserRole(str, Enum):
    """Role stored on directory records. Owners are never directory records."""

    SUB_USER = "sub_user"


class SubscriptionTier(str, Enum):
    """Owner subscription tier."""

    FREE = "free"
    PRO = "pro"


class Collections:
    """Default document-store collection names."""

    SUB_USERS = "sub_users"
    ACCOUNTS = "accounts"


class Limits:
    """Plan limits and credential rules."""

    MAX_USERS = 3
    MIN_PASSWORD_LENGTH = 6
    GENERATED_PASSWORD_LENGTH = 8


# Field carrying the owning-account reference on sub-user documents
OWNER_FIELD = "account_id"
