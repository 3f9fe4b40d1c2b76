"""Tests for the session gate."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from neo_access.config.constants import Capability
from neo_access.core.exceptions import (
    DirectoryError,
    IdentityProviderUnavailable,
    RejectionReason,
)
from neo_access.features.permissions.entities.permission_set import PermissionSet
from neo_access.features.sessions.entities.session import OwnerSession, SessionState, SubUserSession

PASSWORD = "s3cret!"


@pytest_asyncio.fixture
async def sub_user(provisioner, owner_account):
    return await provisioner.create_sub_user(
        owner_account.id,
        {
            "name": "Awa Diop",
            "email": "awa@acme.io",
            "permissions": {"invoices": True, "reports": True, "settings": True},
        },
        PASSWORD,
    )


class TestSubUserLogin:

    @pytest.mark.asyncio
    async def test_active_sub_user(self, session_gate, sub_user, directory_store, permission_cache, clock):
        clock.advance(hours=1)

        attempt = await session_gate.authenticate("Awa@acme.io", PASSWORD)

        assert attempt.state == SessionState.SUB_USER_SESSION
        assert attempt.history == [
            (SessionState.UNAUTHENTICATED, SessionState.RESOLVING_IDENTITY),
            (SessionState.RESOLVING_IDENTITY, SessionState.SUB_USER_SESSION),
        ]
        session = attempt.session
        assert isinstance(session, SubUserSession)
        assert session.account_id == sub_user.account_id
        assert session.permissions == PermissionSet(invoices=True, reports=True)
        assert await permission_cache.load(session.session_key) == session.permissions

        stored = await directory_store.get(sub_user.id)
        assert stored.last_login_at == session.started_at
        assert stored.last_login_at >= datetime(2026, 1, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_inactive_sub_user_is_rejected(self, session_gate, provisioner, sub_user, directory_store, permission_cache):
        await provisioner.update_sub_user(sub_user.account_id, sub_user.id, {"status": "inactive"})

        attempt = await session_gate.authenticate("awa@acme.io", PASSWORD)

        assert attempt.state == SessionState.REJECTED
        assert attempt.reason == RejectionReason.ACCOUNT_DISABLED
        assert attempt.session is None
        assert (await directory_store.get(sub_user.id)).last_login_at is None
        assert len(permission_cache) == 0

    @pytest.mark.asyncio
    async def test_stamp_failure_does_not_block_login(self, session_gate, sub_user, directory_store):
        directory_store.stamp_last_login = AsyncMock(side_effect=DirectoryError("down", operation="stamp_last_login"))

        attempt = await session_gate.authenticate("awa@acme.io", PASSWORD)

        assert attempt.state == SessionState.SUB_USER_SESSION

    @pytest.mark.asyncio
    async def test_sub_user_cannot_access_settings(self, session_gate, sub_user):
        session = (await session_gate.authenticate("awa@acme.io", PASSWORD)).session

        assert session.can_access(Capability.INVOICES) is True
        assert session.can_access(Capability.CLIENTS) is False
        assert session.can_access(Capability.SETTINGS) is False
        assert await session_gate.can_access(session, Capability.REPORTS) is True
        assert await session_gate.can_access(session, Capability.SETTINGS) is False

    @pytest.mark.asyncio
    async def test_logout_clears_cache(self, session_gate, sub_user, permission_cache):
        session = (await session_gate.authenticate("awa@acme.io", PASSWORD)).session

        await session_gate.logout(session)

        assert await permission_cache.load(session.session_key) is None
        assert await session_gate.permissions_for(session) == session.permissions


class TestOwnerLogin:

    @pytest.mark.asyncio
    async def test_owner_session(self, session_gate, owner_account):
        attempt = await session_gate.authenticate("owner@acme.io", "owner-secret")

        assert attempt.state == SessionState.OWNER_SESSION
        assert isinstance(attempt.session, OwnerSession)
        assert attempt.session.account_id == owner_account.id
        assert attempt.session.can_access(Capability.SETTINGS) is True
        assert await session_gate.can_access(attempt.session, Capability.SETTINGS) is True


class TestRejections:

    @pytest.mark.asyncio
    async def test_wrong_password(self, session_gate, sub_user):
        attempt = await session_gate.authenticate("awa@acme.io", "wrong-1")

        assert attempt.reason == RejectionReason.BAD_CREDENTIALS
        assert attempt.error.is_retryable is False

    @pytest.mark.asyncio
    async def test_rate_limited(self, session_gate, sub_user):
        for _ in range(3):
            await session_gate.authenticate("awa@acme.io", "wrong-1")

        attempt = await session_gate.authenticate("awa@acme.io", PASSWORD)

        assert attempt.reason == RejectionReason.RATE_LIMITED
        assert attempt.error.is_retryable is True

    @pytest.mark.asyncio
    async def test_unknown_identity(self, session_gate, identity_provider):
        await identity_provider.register("stray@acme.io", PASSWORD)

        attempt = await session_gate.authenticate("stray@acme.io", PASSWORD)

        assert attempt.reason == RejectionReason.UNKNOWN_IDENTITY

    @pytest.mark.asyncio
    async def test_provider_outage(self, session_gate, identity_provider):
        identity_provider.verify = AsyncMock(side_effect=IdentityProviderUnavailable("down"))

        attempt = await session_gate.authenticate("awa@acme.io", PASSWORD)

        assert attempt.reason == RejectionReason.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_directory_outage(self, session_gate, sub_user, directory_store):
        directory_store.find_by_credential = AsyncMock(side_effect=DirectoryError("down", operation="find_by_credential"))

        attempt = await session_gate.authenticate("awa@acme.io", PASSWORD)

        assert attempt.reason == RejectionReason.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_blank_input(self, session_gate):
        attempt = await session_gate.authenticate("  ", "")

        assert attempt.state == SessionState.REJECTED
        assert attempt.history == [(SessionState.UNAUTHENTICATED, SessionState.REJECTED)]

    @pytest.mark.asyncio
    async def test_unreadable_owner_record(self, session_gate, identity_provider, document_store, account_repository):
        credential_id = await identity_provider.register("boss@acme.io", PASSWORD)
        await document_store.insert(
            account_repository.collection,
            {"credential_id": credential_id, "subscription": "gold"},
        )

        attempt = await session_gate.authenticate("boss@acme.io", PASSWORD)

        assert attempt.state == SessionState.REJECTED
        assert attempt.reason == RejectionReason.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unreadable_sub_user_record(self, session_gate, identity_provider, document_store, directory_store):
        credential_id = await identity_provider.register("ghost@acme.io", PASSWORD)
        await document_store.insert(
            directory_store.collection,
            {"account_id": "acct-1", "credential_id": credential_id, "created_at": None},
        )

        attempt = await session_gate.authenticate("ghost@acme.io", PASSWORD)

        assert attempt.reason == RejectionReason.SERVICE_UNAVAILABLE


class TestGateWiring:

    def test_keeps_injected_cache(self, session_gate, permission_cache):
        assert len(permission_cache) == 0
        assert session_gate.permission_cache is permission_cache
