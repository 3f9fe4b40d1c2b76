"""Process-local permission cache."""

import logging
from typing import Dict, Optional

from ....core.value_objects import SessionKey
from ...permissions.entities.permission_set import PermissionSet

logger = logging.getLogger(__name__)


class LocalPermissionCache:
    """Permission cache held in this process for the lifetime of its sessions."""

    def __init__(self):
        self._entries: Dict[SessionKey, PermissionSet] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def store(self, session_key: SessionKey, permissions: PermissionSet) -> None:
        self._entries[session_key] = permissions
        logger.debug(f"Cached permissions for session {session_key}")

    async def load(self, session_key: SessionKey) -> Optional[PermissionSet]:
        return self._entries.get(session_key)

    async def clear(self, session_key: SessionKey) -> None:
        self._entries.pop(session_key, None)
