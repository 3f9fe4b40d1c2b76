"""Pytest configuration and fixtures for neo-access tests."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from neo_access.config.constants import Capability, SubscriptionTier
from neo_access.core.value_objects import AccountId
from neo_access.features.accounts.entities.owner_account import OwnerAccount
from neo_access.features.accounts.repositories.account_repository import OwnerAccountRepository
from neo_access.features.directory.entities.sub_user import SubUserProfile
from neo_access.features.directory.repositories.directory_store import UserDirectoryStore
from neo_access.features.directory.repositories.memory_document_store import MemoryDocumentStore
from neo_access.features.identity.adapters.memory_identity import MemoryIdentityProvider
from neo_access.features.permissions.entities.permission_set import PermissionSet
from neo_access.features.provisioning.services.account_provisioner import AccountProvisioner
from neo_access.features.provisioning.services.orphan_ledger import OrphanLedger
from neo_access.features.sessions.adapters.local_permission_cache import LocalPermissionCache
from neo_access.features.sessions.services.session_gate import SessionGate

OWNER_EMAIL = "owner@acme.io"
OWNER_PASSWORD = "owner-secret"
SUB_USER_PASSWORD = "s3cret!"


class FakeClock:
    """Deterministic clock that moves one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock starting at 2026-01-01 00:00 UTC."""
    return FakeClock(datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def document_store():
    return MemoryDocumentStore()


@pytest.fixture
def directory_store(document_store, clock):
    return UserDirectoryStore(document_store, clock=clock)


@pytest.fixture
def account_repository(document_store):
    return OwnerAccountRepository(document_store)


@pytest.fixture
def identity_provider():
    return MemoryIdentityProvider(max_failed_attempts=3)


@pytest.fixture
def orphan_ledger(clock):
    return OrphanLedger(clock=clock)


@pytest.fixture
def provisioner(identity_provider, directory_store, orphan_ledger, clock):
    return AccountProvisioner(
        identity_provider,
        directory_store,
        orphan_ledger=orphan_ledger,
        clock=clock,
    )


@pytest.fixture
def permission_cache():
    return LocalPermissionCache()


@pytest.fixture
def session_gate(identity_provider, directory_store, account_repository, permission_cache, clock):
    return SessionGate(
        identity_provider,
        directory_store,
        account_repository,
        permission_cache=permission_cache,
        clock=clock,
    )


@pytest_asyncio.fixture
async def owner_account(identity_provider, account_repository):
    """PRO owner account registered with the identity provider."""
    credential_id = await identity_provider.register(OWNER_EMAIL, OWNER_PASSWORD)
    account = OwnerAccount(
        id=AccountId(""),
        name="Acme SARL",
        email=OWNER_EMAIL,
        credential_id=credential_id,
        subscription=SubscriptionTier.PRO,
        expires_at=datetime(2027, 1, 1, tzinfo=timezone.utc),
    )
    account_id = await account_repository.add(account)
    return OwnerAccount(
        id=account_id,
        name=account.name,
        email=account.email,
        credential_id=account.credential_id,
        subscription=account.subscription,
        expires_at=account.expires_at,
    )


@pytest.fixture
def sample_profile():
    return SubUserProfile(
        name="Awa Diop",
        email="awa@acme.io",
        permissions=PermissionSet.only(Capability.INVOICES, Capability.CLIENTS),
    )


@pytest.fixture
def make_profile():
    """Factory for numbered sub-user profiles."""

    def build(index: int, **overrides) -> SubUserProfile:
        data = {
            "name": f"User {index}",
            "email": f"user{index}@acme.io",
            "permissions": PermissionSet.only(Capability.INVOICES),
        }
        data.update(overrides)
        return SubUserProfile(**data)

    return build
