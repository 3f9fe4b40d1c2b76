"""Redis implementation of the permission cache."""

import json
import logging
from typing import Optional

import redis.asyncio as redis

from ....core.exceptions import PermissionCacheError
from ....core.value_objects import SessionKey
from ...permissions.entities.permission_set import PermissionSet

logger = logging.getLogger(__name__)


class RedisPermissionCache:
    """Permission cache shared between processes through Redis.

    Entries expire after ``ttl`` seconds. Read and write failures are logged
    and treated as misses.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "neo_access:permissions",
        ttl: int = 3600,
        client: Optional[redis.Redis] = None,
    ):
        """Initialize Redis permission cache."""
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.ttl = ttl
        self._redis: Optional[redis.Redis] = client

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._redis is not None:
            return
        try:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
            await self._redis.ping()
            logger.info("Connected to Redis for permission cache")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._redis = None
            raise PermissionCacheError(f"Redis connection failed: {e}") from e

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _ensure_connected(self) -> redis.Redis:
        if not self._redis:
            raise PermissionCacheError("Redis not connected. Use async context manager or call connect().")
        return self._redis

    def _make_key(self, session_key: SessionKey) -> str:
        return f"{self.key_prefix}:{session_key}"

    async def store(self, session_key: SessionKey, permissions: PermissionSet) -> None:
        try:
            redis_client = self._ensure_connected()
            await redis_client.setex(self._make_key(session_key), self.ttl, json.dumps(permissions.to_dict()))
            logger.debug(f"Cached permissions for session {session_key} with TTL {self.ttl}")
        except Exception as e:
            logger.warning(f"Failed to cache permissions for session {session_key}: {e}")

    async def load(self, session_key: SessionKey) -> Optional[PermissionSet]:
        try:
            redis_client = self._ensure_connected()
            value = await redis_client.get(self._make_key(session_key))
        except Exception as e:
            logger.warning(f"Failed to read cached permissions for session {session_key}: {e}")
            return None
        if value is None:
            return None
        try:
            return PermissionSet.from_mapping(json.loads(value))
        except Exception as e:
            logger.warning(f"Discarding unreadable cached permissions for session {session_key}: {e}")
            return None

    async def clear(self, session_key: SessionKey) -> None:
        try:
            redis_client = self._ensure_connected()
            await redis_client.delete(self._make_key(session_key))
            logger.debug(f"Cleared cached permissions for session {session_key}")
        except Exception as e:
            logger.warning(f"Failed to clear cached permissions for session {session_key}: {e}")
