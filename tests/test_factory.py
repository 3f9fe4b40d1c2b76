"""Tests for service wiring."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from neo_access.config.constants import SubscriptionTier
from neo_access.config.settings import AccessSettings
from neo_access.core.exceptions import PermissionCacheError
from neo_access.factory import build_access_services
from neo_access.features.accounts.entities.owner_account import OwnerAccount
from neo_access.features.directory.repositories.memory_document_store import MemoryDocumentStore
from neo_access.features.identity.adapters.memory_identity import MemoryIdentityProvider
from neo_access.features.sessions.adapters.local_permission_cache import LocalPermissionCache
from neo_access.features.sessions.adapters.redis_permission_cache import RedisPermissionCache
from neo_access.features.sessions.entities.session import SessionState


class TestBuildAccessServices:

    @pytest.mark.asyncio
    async def test_memory_backends(self, clock):
        settings = AccessSettings(_env_file=None, max_users=2)

        async with await build_access_services(settings, clock=clock) as services:
            assert isinstance(services.document_store, MemoryDocumentStore)
            assert isinstance(services.identity_provider, MemoryIdentityProvider)
            assert isinstance(services.permission_cache, LocalPermissionCache)
            assert services.provisioner.max_users == 2
            assert services.session_gate.permission_cache is services.permission_cache
            assert services.provisioner.orphan_ledger is services.orphan_ledger

    @pytest.mark.asyncio
    async def test_postgres_requires_url(self):
        settings = AccessSettings(_env_file=None, document_store_backend="postgres")

        with pytest.raises(ValueError):
            await build_access_services(settings)

    @pytest.mark.asyncio
    async def test_redis_cache_is_connected(self):
        settings = AccessSettings(_env_file=None, redis_url="redis://cache:6379")

        with patch.object(RedisPermissionCache, "connect", AsyncMock()) as connect, \
                patch.object(RedisPermissionCache, "disconnect", AsyncMock()) as disconnect:
            services = await build_access_services(settings)
            await services.close()

        assert isinstance(services.permission_cache, RedisPermissionCache)
        connect.assert_awaited_once()
        disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_redis_fails_fast(self):
        settings = AccessSettings(_env_file=None, redis_url="redis://cache:6379")

        with patch.object(RedisPermissionCache, "connect", AsyncMock(side_effect=PermissionCacheError("down"))):
            with pytest.raises(PermissionCacheError):
                await build_access_services(settings)


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_owner_manages_and_sub_user_logs_in(self, clock):

        async with await build_access_services(AccessSettings(_env_file=None), clock=clock) as services:
            credential_id = await services.identity_provider.register("owner@acme.io", "owner-secret")
            account_id = await services.account_repository.add(
                OwnerAccount(
                    id="",
                    name="Acme SARL",
                    email="owner@acme.io",
                    credential_id=credential_id,
                    subscription=SubscriptionTier.PRO,
                    expires_at=datetime(2027, 1, 1, tzinfo=timezone.utc),
                )
            )
            account = await services.account_repository.get(account_id)

            async with services.management_panel(account) as panel:
                user = await panel.add_user(
                    {"name": "Awa Diop", "email": "awa@acme.io", "permissions": {"quotes": True}},
                    "s3cret!",
                    confirm_password="s3cret!",
                )
                await panel.wait_until(lambda p: len(p.users) == 1)

            attempt = await services.session_gate.authenticate("awa@acme.io", "s3cret!")

            assert attempt.state == SessionState.SUB_USER_SESSION
            assert attempt.session.sub_user.id == user.id
            assert services.document_store.open_watches == 0
