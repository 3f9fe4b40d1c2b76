"""Tests for the provisioning saga and the orphan ledger."""

from unittest.mock import AsyncMock

import pytest

from neo_access.core.exceptions import (
    IdentityNotFound,
    IdentityProviderUnavailable,
    ProvisionerConsistencyError,
    RevocationUnsupported,
)
from neo_access.features.provisioning.services.orphan_ledger import OrphanLedger
from neo_access.features.provisioning.services.saga import ProvisioningSaga


class TestProvisioningSaga:

    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self):
        calls = []

        async def first(context):
            calls.append("first")
            return 1

        async def second(context):
            calls.append("second")
            return context["first"] + 1

        saga = ProvisioningSaga(name="demo").add_step("first", first).add_step("second", second)

        context = await saga.run()

        assert calls == ["first", "second"]
        assert context["second"] == 2

    @pytest.mark.asyncio
    async def test_compensates_in_reverse_and_reraises(self):
        undone = []

        async def ok(context):
            return None

        async def fail(context):
            raise KeyError("boom")

        def undo(name):
            async def compensate(context):
                undone.append(name)
            return compensate

        saga = ProvisioningSaga(name="demo")
        saga.add_step("a", ok, undo("a"))
        saga.add_step("b", ok, undo("b"))
        saga.add_step("c", fail, undo("c"))

        with pytest.raises(KeyError):
            await saga.run()

        assert undone == ["b", "a"]

    @pytest.mark.asyncio
    async def test_failed_compensation_raises_consistency_error(self):
        hook = AsyncMock()

        async def register(context):
            context["credential_id"] = "cred-1"

        async def revoke(context):
            raise IdentityProviderUnavailable("down")

        async def insert(context):
            raise ValueError("insert failed")

        saga = ProvisioningSaga(name="create", on_compensation_failure=hook)
        saga.add_step("register", register, revoke)
        saga.add_step("insert", insert)

        with pytest.raises(ProvisionerConsistencyError) as exc_info:
            await saga.run({"account_id": "acct-1"})

        error = exc_info.value
        assert error.phase == "insert"
        assert error.credential_id == "cred-1"
        assert error.account_id == "acct-1"
        assert isinstance(error.__cause__, ValueError)
        context, failures = hook.await_args.args
        assert [failure.step for failure in failures] == ["register"]


class TestOrphanLedger:

    def test_record_is_deduplicated(self, orphan_ledger):
        orphan_ledger.record("cred-1", "acct-1", "first")
        orphan_ledger.record("cred-1", "acct-1", "second")

        assert len(orphan_ledger) == 1
        assert orphan_ledger.entries[0].reason == "first"

    @pytest.mark.asyncio
    async def test_reconcile(self, orphan_ledger):
        provider = AsyncMock()
        outcomes = {
            "cred-ok": None,
            "cred-gone": IdentityNotFound("gone"),
            "cred-down": IdentityProviderUnavailable("down"),
            "cred-locked": RevocationUnsupported("no admin"),
        }

        async def revoke(credential_id):
            outcome = outcomes[credential_id]
            if outcome is not None:
                raise outcome

        provider.revoke.side_effect = revoke
        for credential_id in outcomes:
            orphan_ledger.record(credential_id, "acct-1", "test")

        report = await orphan_ledger.reconcile(provider)

        assert report.revoked == ["cred-ok"]
        assert report.already_gone == ["cred-gone"]
        assert sorted(report.pending) == ["cred-down", "cred-locked"]
        assert sorted(entry.credential_id for entry in orphan_ledger.entries) == ["cred-down", "cred-locked"]
        assert all(entry.attempts == 1 for entry in orphan_ledger.entries)

    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self, orphan_ledger):
        provider = AsyncMock()
        orphan_ledger.record("cred-1", None, "test")

        await orphan_ledger.reconcile(provider)
        report = await orphan_ledger.reconcile(provider)

        assert len(orphan_ledger) == 0
        assert report.revoked == []
        provider.revoke.assert_awaited_once_with("cred-1")
