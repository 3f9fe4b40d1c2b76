"""User directory store.

Owns the remote sub-user collection and hands out owner-scoped live views of
it. The remote store is the source of truth: callers treat the next
subscription emission, not a write's return, as confirmation.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ....config.constants import Collections, OWNER_FIELD, SubUserRole
from ....core.exceptions import (
    AccessControlError,
    DirectoryError,
    DocumentNotFound,
    SubUserNotFound,
    ValidationError,
)
from ....core.value_objects import AccountId, CredentialId, SubUserId
from ....utils.datetime import Clock, to_iso, utc_now
from ...permissions.services.access_policy import clamp_grant, ensure_any_grant
from ..entities.protocols import Document, DocumentStore, RecordWatch
from ..entities.sub_user import SubUser, SubUserUpdate

logger = logging.getLogger(__name__)


def sort_newest_first(users: List[SubUser]) -> List[SubUser]:
    """Order by creation time, newest first. Ties keep their incoming order."""
    return sorted(users, key=lambda user: user.created_at, reverse=True)


class DirectorySubscription:
    """Live, owner-scoped view of the directory.

    Use as an async context manager; the underlying watch is released on exit
    whatever the exit path. Iterating yields the full sorted list on every
    remote change.
    """

    def __init__(self, store: "UserDirectoryStore", account_id: AccountId):
        self.account_id = account_id
        self._store = store
        self._watch: Optional[RecordWatch] = None
        self.snapshot: List[SubUser] = []
        self.emissions = 0

    @property
    def is_open(self) -> bool:
        return self._watch is not None

    async def open(self) -> "DirectorySubscription":
        if self._watch is None:
            self._watch = await self._store._open_watch(self.account_id)
            logger.debug(f"Directory subscription opened for account {self.account_id}")
        return self

    async def close(self) -> None:
        if self._watch is None:
            return
        watch, self._watch = self._watch, None
        try:
            await watch.close()
        except Exception as e:
            logger.warning(f"Failed to release directory watch for account {self.account_id}: {e}")
        logger.debug(f"Directory subscription closed for account {self.account_id}")

    async def __aenter__(self) -> "DirectorySubscription":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __aiter__(self) -> "DirectorySubscription":
        return self

    async def __anext__(self) -> List[SubUser]:
        if self._watch is None:
            raise StopAsyncIteration
        try:
            documents = await self._watch.__anext__()
        except StopAsyncIteration:
            raise
        except AccessControlError as e:
            raise DirectoryError(f"Directory watch failed: {e.message}", operation="subscribe") from e
        except Exception as e:
            raise DirectoryError(f"Directory watch failed: {e}", operation="subscribe") from e

        users = self._store._to_users(documents, self.account_id)
        self.snapshot = sort_newest_first(users)
        self.emissions += 1
        return list(self.snapshot)


class UserDirectoryStore:
    """Repository for sub-user directory records."""

    def __init__(
        self,
        document_store: DocumentStore,
        collection: str = Collections.SUB_USERS,
        clock: Clock = utc_now,
    ):
        """Initialize directory store."""
        if document_store is None:
            raise ValueError("Document store is required")
        self.document_store = document_store
        self.collection = collection
        self._clock = clock

    def _to_users(self, documents: List[Document], account_id: AccountId) -> List[SubUser]:
        users: List[SubUser] = []
        for document in documents:
            # Never surface another account's records, whatever the store returned
            if document.data.get(OWNER_FIELD) != account_id:
                continue
            try:
                users.append(SubUser.from_document(document.id, document.data))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable directory record {document.id}: {e}")
        return users

    async def _open_watch(self, account_id: AccountId) -> RecordWatch:
        try:
            return await self.document_store.watch(self.collection, {OWNER_FIELD: account_id})
        except Exception as e:
            logger.error(f"Failed to subscribe to directory for account {account_id}: {e}")
            raise DirectoryError(f"Cannot subscribe to directory: {e}", operation="subscribe") from e

    def subscribe(self, account_id: AccountId) -> DirectorySubscription:
        """Create a live view of the account's sub-users (open it with ``async with``)."""
        return DirectorySubscription(self, account_id)

    async def insert(self, sub_user: SubUser) -> SubUserId:
        """Insert a new record and return its store-assigned id."""
        ensure_any_grant(sub_user.permissions)
        document = sub_user.to_document()
        document["permissions"] = clamp_grant(sub_user.permissions).to_dict()
        document["role"] = SubUserRole.SUB_USER.value
        try:
            document_id = await self.document_store.insert(self.collection, document)
        except Exception as e:
            logger.error(f"Failed to insert sub-user for account {sub_user.account_id}: {e}")
            raise DirectoryError(f"Cannot insert sub-user: {e}", operation="insert") from e
        logger.info(f"Inserted sub-user {document_id} for account {sub_user.account_id}")
        return SubUserId(document_id)

    async def update(self, sub_user_id: SubUserId, update: SubUserUpdate) -> None:
        """Apply an owner edit. Unset fields are left untouched."""
        if update.is_empty:
            raise ValidationError("Nothing to update")
        if update.permissions is not None:
            ensure_any_grant(update.permissions)
            update = update.with_permissions(clamp_grant(update.permissions))
        await self._write(sub_user_id, update.to_fields(), operation="update")

    async def stamp_last_login(self, sub_user_id: SubUserId, when: datetime) -> None:
        await self._write(sub_user_id, {"last_login_at": to_iso(when)}, operation="stamp_last_login")

    async def stamp_password_reset(self, sub_user_id: SubUserId, when: datetime) -> None:
        await self._write(sub_user_id, {"password_reset_at": to_iso(when)}, operation="stamp_password_reset")

    async def _write(self, sub_user_id: SubUserId, fields: Mapping[str, Any], operation: str) -> None:
        payload: Dict[str, Any] = {**fields, "updated_at": to_iso(self._clock())}
        try:
            await self.document_store.update(self.collection, sub_user_id, payload)
        except DocumentNotFound as e:
            raise SubUserNotFound(sub_user_id, operation=operation) from e
        except Exception as e:
            logger.error(f"Directory {operation} failed for {sub_user_id}: {e}")
            raise DirectoryError(
                f"Cannot {operation.replace('_', ' ')}: {e}",
                operation=operation,
                sub_user_id=sub_user_id,
            ) from e
        logger.debug(f"Directory {operation} applied to {sub_user_id}: {sorted(fields)}")

    async def remove(self, sub_user_id: SubUserId) -> None:
        """Delete a record. Removing an unknown id is a no-op."""
        try:
            await self.document_store.remove(self.collection, sub_user_id)
        except Exception as e:
            logger.error(f"Failed to remove sub-user {sub_user_id}: {e}")
            raise DirectoryError(
                f"Cannot remove sub-user: {e}", operation="remove", sub_user_id=sub_user_id
            ) from e
        logger.info(f"Removed sub-user {sub_user_id}")

    async def get(self, sub_user_id: SubUserId) -> Optional[SubUser]:
        try:
            document = await self.document_store.get(self.collection, sub_user_id)
        except Exception as e:
            raise DirectoryError(f"Cannot read sub-user: {e}", operation="get", sub_user_id=sub_user_id) from e
        if document is None:
            return None
        return SubUser.from_document(document.id, document.data)

    async def find_by_credential(self, credential_id: CredentialId) -> Optional[SubUser]:
        """Find the record paired with an identity-provider registration."""
        try:
            documents = await self.document_store.find(self.collection, {"credential_id": credential_id})
        except Exception as e:
            raise DirectoryError(f"Cannot look up sub-user: {e}", operation="find_by_credential") from e
        if not documents:
            return None
        if len(documents) > 1:
            logger.warning(f"Credential {credential_id} is paired with {len(documents)} directory records")
        return SubUser.from_document(documents[0].id, documents[0].data)

    async def list_for_account(self, account_id: AccountId) -> List[SubUser]:
        """One-shot read of an account's directory, newest first."""
        try:
            documents = await self.document_store.find(self.collection, {OWNER_FIELD: account_id})
        except Exception as e:
            raise DirectoryError(f"Cannot list sub-users: {e}", operation="list") from e
        return sort_newest_first(self._to_users(documents, account_id))
