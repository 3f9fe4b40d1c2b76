"""Owner account repository."""

import logging
from typing import Optional

from ....config.constants import Collections
from ....core.exceptions import DirectoryError
from ....core.value_objects import AccountId, CredentialId
from ...directory.entities.protocols import DocumentStore
from ..entities.owner_account import OwnerAccount

logger = logging.getLogger(__name__)


class OwnerAccountRepository:
    """Read access to owner accounts in the document store."""

    def __init__(self, document_store: DocumentStore, collection: str = Collections.ACCOUNTS):
        """Initialize account repository."""
        if document_store is None:
            raise ValueError("Document store is required")
        self.document_store = document_store
        self.collection = collection

    async def get(self, account_id: AccountId) -> Optional[OwnerAccount]:
        try:
            document = await self.document_store.get(self.collection, account_id)
        except Exception as e:
            raise DirectoryError(f"Cannot read account: {e}", operation="get_account") from e
        if document is None:
            return None
        return OwnerAccount.from_document(document.id, document.data)

    async def find_by_credential(self, credential_id: CredentialId) -> Optional[OwnerAccount]:
        """Find the owner account registered under an identity-provider credential."""
        try:
            documents = await self.document_store.find(self.collection, {"credential_id": credential_id})
        except Exception as e:
            raise DirectoryError(f"Cannot look up account: {e}", operation="find_account") from e
        if not documents:
            return None
        return OwnerAccount.from_document(documents[0].id, documents[0].data)

    async def add(self, account: OwnerAccount) -> AccountId:
        """Store an owner account and return its id.

        Owner sign-up lives outside this library; this exists for seeding and
        administration scripts.
        """
        try:
            document_id = await self.document_store.insert(self.collection, account.to_document())
        except Exception as e:
            raise DirectoryError(f"Cannot store account: {e}", operation="add_account") from e
        logger.info(f"Stored owner account {document_id}")
        return AccountId(document_id)
