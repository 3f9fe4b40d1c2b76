"""User management panel.

Owner-facing facade over the directory and the provisioner. Keeps a live,
newest-first list of the owner's sub-users and gates every operation on an
active PRO subscription.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Union

from ....core.exceptions import DirectoryError
from ....core.value_objects import SubUserId
from ....utils.datetime import Clock, utc_now
from ...accounts.entities.owner_account import OwnerAccount
from ...directory.entities.sub_user import SubUser, SubUserProfile, SubUserUpdate
from ...directory.repositories.directory_store import DirectorySubscription, UserDirectoryStore
from ...permissions.services.access_policy import (
    can_create,
    ensure_multi_user_access,
    has_multi_user_access,
)
from ...provisioning.entities.results import DeletionResult, PasswordResetResult
from ...provisioning.services.account_provisioner import AccountProvisioner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryStats:
    total: int
    active: int
    remaining_slots: int


class UserManagementPanel:
    """Live sub-user management for one owner account.

    Use as an async context manager. While open, a background task follows
    the directory subscription and replaces ``users`` on every emission.
    Writes are confirmed by the next emission, not by their return.
    """

    def __init__(
        self,
        account: OwnerAccount,
        directory_store: UserDirectoryStore,
        provisioner: AccountProvisioner,
        max_users: Optional[int] = None,
        load_timeout: float = 10.0,
        clock: Clock = utc_now,
    ):
        self.account = account
        self.directory_store = directory_store
        self.provisioner = provisioner
        self.max_users = max_users if max_users is not None else provisioner.max_users
        self.load_timeout = load_timeout
        self._clock = clock

        self._users: List[SubUser] = []
        self._emissions = 0
        self._error: Optional[DirectoryError] = None
        self._subscription: Optional[DirectorySubscription] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._changed = asyncio.Condition()

    async def __aenter__(self) -> "UserManagementPanel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self._subscription is not None:
            return
        subscription = self.directory_store.subscribe(self.account.id)
        await subscription.open()
        self._subscription = subscription
        self._pump_task = asyncio.create_task(self._pump(subscription))
        logger.debug(f"Management panel opened for account {self.account.id}")

    async def close(self) -> None:
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
            self._pump_task = None
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
        logger.debug(f"Management panel closed for account {self.account.id}")

    async def _pump(self, subscription: DirectorySubscription) -> None:
        try:
            async for users in subscription:
                async with self._changed:
                    self._users = users
                    self._emissions += 1
                    self._changed.notify_all()
        except DirectoryError as e:
            logger.error(f"Directory subscription for account {self.account.id} failed: {e}")
            async with self._changed:
                self._error = e
                self._changed.notify_all()

    # State

    @property
    def users(self) -> List[SubUser]:
        return list(self._users)

    @property
    def is_loading(self) -> bool:
        return self._emissions == 0 and self._error is None

    @property
    def error(self) -> Optional[DirectoryError]:
        """Set when the live subscription stopped on a directory failure."""
        return self._error

    @property
    def emissions(self) -> int:
        return self._emissions

    @property
    def can_create_user(self) -> bool:
        return can_create(len(self._users), self.max_users)

    @property
    def has_access(self) -> bool:
        return has_multi_user_access(self.account, self._clock())

    async def wait_until(self, predicate: Callable[["UserManagementPanel"], bool], timeout: Optional[float] = None) -> None:
        """Block until ``predicate(panel)`` holds after some emission.

        Raises:
            DirectoryError: If the subscription failed
            asyncio.TimeoutError: If the predicate does not hold in time
        """

        def ready() -> bool:
            return self._error is not None or predicate(self)

        async with self._changed:
            await asyncio.wait_for(self._changed.wait_for(ready), timeout or self.load_timeout)
        if self._error is not None:
            raise self._error

    async def loaded(self) -> None:
        """Wait for the first directory snapshot."""
        await self.wait_until(lambda panel: panel.emissions > 0)

    def search(self, term: str) -> List[SubUser]:
        """Case-insensitive substring match on name or email."""
        term = (term or "").strip().lower()
        if not term:
            return self.users
        return [
            user for user in self._users
            if term in user.name.lower() or term in user.email.lower()
        ]

    def stats(self) -> DirectoryStats:
        total = len(self._users)
        return DirectoryStats(
            total=total,
            active=sum(1 for user in self._users if user.is_active),
            remaining_slots=max(self.max_users - total, 0),
        )

    # Operations

    def _ensure_access(self) -> None:
        ensure_multi_user_access(self.account, self._clock())

    async def add_user(
        self,
        profile: Union[SubUserProfile, Mapping[str, Any]],
        password: str,
        confirm_password: Optional[str] = None,
    ) -> SubUser:
        """Create a sub-user. The limit is checked against the stored directory."""
        self._ensure_access()
        return await self.provisioner.create_sub_user(
            self.account.id,
            profile,
            password,
            confirm_password=confirm_password,
        )

    async def update_user(self, sub_user_id: SubUserId, update: Union[SubUserUpdate, Mapping[str, Any]]) -> None:
        self._ensure_access()
        await self.provisioner.update_sub_user(self.account.id, sub_user_id, update)

    async def delete_user(self, sub_user_id: SubUserId) -> DeletionResult:
        self._ensure_access()
        return await self.provisioner.delete_sub_user(self.account.id, sub_user_id)

    async def reset_user_password(
        self,
        sub_user_id: SubUserId,
        new_password: str,
        confirm_password: str,
    ) -> PasswordResetResult:
        self._ensure_access()
        return await self.provisioner.reset_password(self.account.id, sub_user_id, new_password, confirm_password)
