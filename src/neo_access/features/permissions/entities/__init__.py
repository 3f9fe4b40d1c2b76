from .permission_set import PermissionSet

__all__ = ["PermissionSet"]
