"""Account provisioner.

Keeps identity provider registrations and directory records in step. Every
sub-user has exactly one of each; the two systems share no transaction, so
multi-system writes run as a ``ProvisioningSaga`` and leftovers that cannot
be undone go to the ``OrphanLedger``.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Union

from ....config.constants import Limits, SubUserRole
from ....config.logging_config import mask_email
from ....core.exceptions import (
    IdentityNotFound,
    PolicyError,
    RevocationUnsupported,
    RotationUnsupported,
    SubUserNotFound,
    ValidationError,
)
from ....core.value_objects import AccountId, SubUserId, require_identifier
from ....utils.datetime import Clock, utc_now
from ...directory.entities.sub_user import SubUser, SubUserProfile, SubUserUpdate, parse_input
from ...directory.repositories.directory_store import UserDirectoryStore
from ...identity.entities.protocols import IdentityProvider
from ...permissions.services.access_policy import clamp_grant, ensure_any_grant, ensure_can_create
from ..entities.results import DeletionResult, PasswordResetResult
from .orphan_ledger import OrphanLedger
from .saga import CompensationFailure, ProvisioningSaga, StepContext

logger = logging.getLogger(__name__)


class AccountProvisioner:
    """Creates, edits and removes sub-users on behalf of an owner account."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        directory_store: UserDirectoryStore,
        orphan_ledger: Optional[OrphanLedger] = None,
        max_users: int = Limits.MAX_USERS,
        min_password_length: int = Limits.MIN_PASSWORD_LENGTH,
        clock: Clock = utc_now,
    ):
        """Initialize account provisioner.

        Args:
            identity_provider: External authentication service
            directory_store: Sub-user directory
            orphan_ledger: Where unrevoked registrations are recorded
            max_users: Plan limit on sub-users per account
            min_password_length: Shortest password accepted before any remote call
            clock: Source of timestamps
        """
        if identity_provider is None:
            raise ValueError("Identity provider is required")
        if directory_store is None:
            raise ValueError("Directory store is required")
        self.identity_provider = identity_provider
        self.directory_store = directory_store
        self.orphan_ledger = orphan_ledger if orphan_ledger is not None else OrphanLedger(clock=clock)
        self.max_users = max_users
        self.min_password_length = min_password_length
        self._clock = clock
        self._create_locks: Dict[AccountId, asyncio.Lock] = {}

    def _check_password(self, password: str, confirm_password: Optional[str]) -> None:
        if not password or len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters",
                field="password",
            )
        if confirm_password is not None and confirm_password != password:
            raise ValidationError("Passwords do not match", field="confirm_password")

    async def _require_owned(self, account_id: AccountId, sub_user_id: SubUserId, operation: str) -> SubUser:
        sub_user = await self.directory_store.get(sub_user_id)
        if sub_user is None:
            raise SubUserNotFound(sub_user_id, operation=operation)
        if sub_user.account_id != account_id:
            logger.warning(f"Account {account_id} attempted {operation} on sub-user {sub_user_id} it does not own")
            raise PolicyError(
                "Sub-user belongs to another account",
                rule="ownership",
                sub_user_id=sub_user_id,
            )
        return sub_user

    async def _record_orphan(self, context: StepContext, failures: List[CompensationFailure]) -> None:
        credential_id = context.get("credential_id")
        if credential_id is None:
            return
        reason = "; ".join(f"{failure.step}: {failure.error}" for failure in failures)
        self.orphan_ledger.record(credential_id, context.get("account_id"), reason)

    async def create_sub_user(
        self,
        account_id: AccountId,
        profile: Union[SubUserProfile, Mapping[str, Any]],
        password: str,
        *,
        confirm_password: Optional[str] = None,
    ) -> SubUser:
        """Register a sub-user with the identity provider and the directory.

        All local checks run before the first remote call. The sub-user limit
        is checked against the stored records while holding the account's
        create lock, which is kept until the record is written.

        Args:
            account_id: Owning account
            profile: Name, email, permissions and status
            password: Initial password
            confirm_password: Must equal ``password`` when given

        Returns:
            The stored sub-user

        Raises:
            ValidationError: Bad profile, password or empty grant
            PolicyError: The account is at its sub-user limit
            EmailInUse: The email is already registered
            DirectoryError: The directory could not be read, or the record
                could not be stored (registration undone)
            ProvisionerConsistencyError: The registration could not be undone
        """
        require_identifier(account_id, "account_id")
        profile = parse_input(SubUserProfile, profile)
        self._check_password(password, confirm_password)
        ensure_any_grant(profile.permissions)

        lock = self._create_locks.setdefault(account_id, asyncio.Lock())
        async with lock:
            existing = await self.directory_store.list_for_account(account_id)
            ensure_can_create(len(existing), self.max_users)
            return await self._provision(account_id, profile, password)

    async def _provision(self, account_id: AccountId, profile: SubUserProfile, password: str) -> SubUser:
        sub_user = SubUser(
            id=SubUserId(""),
            name=profile.name,
            email=profile.email,
            permissions=clamp_grant(profile.permissions),
            account_id=account_id,
            credential_id=None,
            created_at=self._clock(),
            status=profile.status,
            role=SubUserRole.SUB_USER,
        )

        async def register_identity(context: StepContext) -> None:
            context["credential_id"] = await self.identity_provider.register(profile.email, password)

        async def revoke_identity(context: StepContext) -> None:
            await self.identity_provider.revoke(context["credential_id"])

        async def insert_record(context: StepContext) -> None:
            record = replace(sub_user, credential_id=context["credential_id"])
            sub_user_id = await self.directory_store.insert(record)
            context["sub_user"] = replace(record, id=sub_user_id)

        saga = ProvisioningSaga(name="create_sub_user", on_compensation_failure=self._record_orphan)
        saga.add_step("register_identity", register_identity, revoke_identity)
        saga.add_step("insert_record", insert_record)

        context = await saga.run({"account_id": account_id})
        created: SubUser = context["sub_user"]
        logger.info(f"Created sub-user {created.id} ({mask_email(created.email)}) for account {account_id}")
        return created

    async def update_sub_user(
        self,
        account_id: AccountId,
        sub_user_id: SubUserId,
        update: Union[SubUserUpdate, Mapping[str, Any]],
    ) -> None:
        """Apply an owner edit to a sub-user.

        A changed email is synced to the identity provider first and reverted
        there if the directory write fails.
        """
        update = parse_input(SubUserUpdate, update)
        if update.is_empty:
            raise ValidationError("Nothing to update")
        if update.permissions is not None:
            ensure_any_grant(update.permissions)
        existing = await self._require_owned(account_id, sub_user_id, operation="update")

        saga = ProvisioningSaga(name="update_sub_user")
        if update.email is not None and update.email != existing.email:

            async def sync_email(context: StepContext) -> bool:
                try:
                    await self.identity_provider.update_email(existing.credential_id, update.email)
                except RotationUnsupported as e:
                    logger.warning(
                        f"Login email for sub-user {sub_user_id} not synced with the identity provider: {e}"
                    )
                    return False
                return True

            async def restore_email(context: StepContext) -> None:
                if context["sync_email"]:
                    await self.identity_provider.update_email(existing.credential_id, existing.email)

            saga.add_step("sync_email", sync_email, restore_email)

        async def update_record(context: StepContext) -> None:
            await self.directory_store.update(sub_user_id, update)

        saga.add_step("update_record", update_record)
        await saga.run({"account_id": account_id, "credential_id": existing.credential_id})
        logger.info(f"Updated sub-user {sub_user_id} fields: {sorted(update.model_fields_set)}")

    async def delete_sub_user(self, account_id: AccountId, sub_user_id: SubUserId) -> DeletionResult:
        """Remove a sub-user's record, then try to revoke its identity.

        The directory removal must succeed; revocation is best effort.
        Deleting an unknown id returns ``removed=False``.
        """
        sub_user = await self.directory_store.get(sub_user_id)
        if sub_user is None:
            logger.debug(f"Delete of unknown sub-user {sub_user_id} ignored")
            return DeletionResult(sub_user_id=sub_user_id, removed=False)
        if sub_user.account_id != account_id:
            raise PolicyError(
                "Sub-user belongs to another account",
                rule="ownership",
                sub_user_id=sub_user_id,
            )

        await self.directory_store.remove(sub_user_id)

        credential_id = sub_user.credential_id
        try:
            await self.identity_provider.revoke(credential_id)
        except RevocationUnsupported as e:
            logger.info(f"Identity {credential_id} kept after deleting sub-user {sub_user_id}: {e}")
            return DeletionResult(
                sub_user_id=sub_user_id,
                removed=True,
                credential_id=credential_id,
                revocation_error=str(e),
            )
        except IdentityNotFound:
            logger.info(f"Identity {credential_id} was already gone")
        except Exception as e:
            logger.error(f"Failed to revoke identity {credential_id} for deleted sub-user {sub_user_id}: {e}")
            self.orphan_ledger.record(credential_id, account_id, f"revoke after delete: {e}")
            return DeletionResult(
                sub_user_id=sub_user_id,
                removed=True,
                credential_id=credential_id,
                revocation_error=str(e),
            )

        logger.info(f"Deleted sub-user {sub_user_id} for account {account_id}")
        return DeletionResult(
            sub_user_id=sub_user_id,
            removed=True,
            credential_id=credential_id,
            identity_revoked=True,
        )

    async def reset_password(
        self,
        account_id: AccountId,
        sub_user_id: SubUserId,
        new_password: str,
        confirm_password: str,
    ) -> PasswordResetResult:
        """Set a new password for a sub-user.

        When the provider cannot rotate passwords from this process the reset
        is still recorded and the result is degraded.
        """
        self._check_password(new_password, confirm_password)
        sub_user = await self._require_owned(account_id, sub_user_id, operation="reset_password")

        rotated = True
        try:
            await self.identity_provider.rotate_password(sub_user.credential_id, new_password)
        except RotationUnsupported as e:
            logger.warning(f"Password for sub-user {sub_user_id} recorded but not rotated: {e}")
            rotated = False

        reset_at = self._clock()
        await self.directory_store.stamp_password_reset(sub_user_id, reset_at)
        logger.info(f"Password reset for sub-user {sub_user_id} (rotated={rotated})")
        return PasswordResetResult(sub_user_id=sub_user_id, reset_at=reset_at, rotated=rotated)
