"""Management services."""

from .user_management_panel import DirectoryStats, UserManagementPanel

__all__ = [
    "DirectoryStats",
    "UserManagementPanel",
]
