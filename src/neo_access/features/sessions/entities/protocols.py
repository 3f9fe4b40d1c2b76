"""Permission cache protocol."""

from typing import Optional, Protocol, runtime_checkable

from ....core.value_objects import SessionKey
from ...permissions.entities.permission_set import PermissionSet


@runtime_checkable
class PermissionCache(Protocol):
    """Session-scoped, advisory copy of a sub-user's permissions.

    The directory record stays authoritative; a cache miss or a failed write
    never blocks a login.
    """

    async def store(self, session_key: SessionKey, permissions: PermissionSet) -> None:
        ...

    async def load(self, session_key: SessionKey) -> Optional[PermissionSet]:
        ...

    async def clear(self, session_key: SessionKey) -> None:
        ...
