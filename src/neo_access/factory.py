"""Service wiring.

Builds the adapters selected in ``AccessSettings`` and the services on top
of them. Callers own the returned container and must ``close()`` it (or use
it as an async context manager).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config.settings import AccessSettings, get_settings
from .features.accounts.entities.owner_account import OwnerAccount
from .features.accounts.repositories.account_repository import OwnerAccountRepository
from .features.directory.entities.protocols import DocumentStore
from .features.directory.repositories.directory_store import UserDirectoryStore
from .features.directory.repositories.memory_document_store import MemoryDocumentStore
from .features.directory.repositories.postgres_document_store import PostgresDocumentStore
from .features.identity.adapters.keycloak_identity import KeycloakIdentityProvider
from .features.identity.adapters.memory_identity import MemoryIdentityProvider
from .features.identity.entities.protocols import IdentityProvider
from .features.management.services.user_management_panel import UserManagementPanel
from .features.provisioning.services.account_provisioner import AccountProvisioner
from .features.provisioning.services.orphan_ledger import OrphanLedger
from .features.sessions.adapters.local_permission_cache import LocalPermissionCache
from .features.sessions.adapters.redis_permission_cache import RedisPermissionCache
from .features.sessions.entities.protocols import PermissionCache
from .features.sessions.services.session_gate import SessionGate
from .utils.datetime import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class AccessServices:
    settings: AccessSettings
    document_store: DocumentStore
    identity_provider: IdentityProvider
    permission_cache: PermissionCache
    directory_store: UserDirectoryStore
    account_repository: OwnerAccountRepository
    orphan_ledger: OrphanLedger
    provisioner: AccountProvisioner
    session_gate: SessionGate
    clock: Clock = utc_now

    def management_panel(self, account: OwnerAccount) -> UserManagementPanel:
        """Panel for one owner account (open it with ``async with``)."""
        return UserManagementPanel(
            account=account,
            directory_store=self.directory_store,
            provisioner=self.provisioner,
            max_users=self.settings.max_users,
            clock=self.clock,
        )

    async def close(self) -> None:
        if isinstance(self.permission_cache, RedisPermissionCache):
            await self.permission_cache.disconnect()
        if isinstance(self.document_store, PostgresDocumentStore):
            await self.document_store.close_pool()
        logger.info("Access services closed")

    async def __aenter__(self) -> "AccessServices":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def _build_document_store(settings: AccessSettings) -> DocumentStore:
    if settings.document_store_backend == "postgres":
        if not settings.database_url:
            raise ValueError("NEO_ACCESS_DATABASE_URL is required for the postgres document store")
        store = PostgresDocumentStore(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        await store.ensure_schema()
        return store
    if settings.is_production:
        logger.warning("Using the in-memory document store in production")
    return MemoryDocumentStore()


def _build_identity_provider(settings: AccessSettings) -> IdentityProvider:
    if settings.identity_backend == "keycloak":
        return KeycloakIdentityProvider.from_settings(settings)
    return MemoryIdentityProvider(min_password_length=settings.min_password_length)


async def _build_permission_cache(settings: AccessSettings) -> PermissionCache:
    if settings.is_cache_shared:
        cache = RedisPermissionCache(
            redis_url=settings.redis_url,
            key_prefix=settings.permission_cache_prefix,
            ttl=settings.permission_cache_ttl,
        )
        await cache.connect()
        return cache
    return LocalPermissionCache()


async def build_access_services(
    settings: Optional[AccessSettings] = None,
    clock: Clock = utc_now,
) -> AccessServices:
    """Create every adapter and service described by ``settings``."""
    settings = settings or get_settings()

    document_store = await _build_document_store(settings)
    identity_provider = _build_identity_provider(settings)
    permission_cache = await _build_permission_cache(settings)

    directory_store = UserDirectoryStore(document_store, settings.sub_users_collection, clock=clock)
    account_repository = OwnerAccountRepository(document_store, settings.accounts_collection)
    orphan_ledger = OrphanLedger(clock=clock)
    provisioner = AccountProvisioner(
        identity_provider,
        directory_store,
        orphan_ledger=orphan_ledger,
        max_users=settings.max_users,
        min_password_length=settings.min_password_length,
        clock=clock,
    )
    session_gate = SessionGate(
        identity_provider,
        directory_store,
        account_repository,
        permission_cache=permission_cache,
        clock=clock,
    )

    logger.info(
        f"Access services ready: store={settings.document_store_backend}, "
        f"identity={settings.identity_backend}, shared_cache={settings.is_cache_shared}"
    )
    return AccessServices(
        settings=settings,
        document_store=document_store,
        identity_provider=identity_provider,
        permission_cache=permission_cache,
        directory_store=directory_store,
        account_repository=account_repository,
        orphan_ledger=orphan_ledger,
        provisioner=provisioner,
        session_gate=session_gate,
        clock=clock,
    )
