"""Permission cache adapters."""

from .local_permission_cache import LocalPermissionCache
from .redis_permission_cache import RedisPermissionCache

__all__ = [
    "LocalPermissionCache",
    "RedisPermissionCache",
]
