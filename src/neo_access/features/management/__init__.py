"""Owner-facing sub-user management."""

from .services import DirectoryStats, UserManagementPanel

__all__ = [
    "DirectoryStats",
    "UserManagementPanel",
]
