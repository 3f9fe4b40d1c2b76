"""Tests for sub-user entities and input models."""

from datetime import datetime, timezone

import pytest

from neo_access.config.constants import SubUserRole, SubUserStatus
from neo_access.core.exceptions import ValidationError
from neo_access.core.value_objects import AccountId, CredentialId, SubUserId
from neo_access.features.directory.entities.sub_user import (
    SubUser,
    SubUserProfile,
    SubUserUpdate,
    parse_input,
)
from neo_access.features.permissions.entities.permission_set import PermissionSet


class TestSubUserDocument:

    def test_document_round_trip(self):
        sub_user = SubUser(
            id=SubUserId("su-1"),
            name="Awa",
            email="awa@acme.io",
            permissions=PermissionSet(invoices=True),
            account_id=AccountId("acct-1"),
            credential_id=CredentialId("cred-1"),
            created_at=datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc),
            last_login_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
        )

        restored = SubUser.from_document("su-1", sub_user.to_document())

        assert restored == sub_user
        assert sub_user.to_document()["created_at"] == "2026-01-01T09:30:00+00:00"

    def test_malformed_record(self):
        with pytest.raises(ValidationError):
            SubUser.from_document("su-1", {"name": "Awa"})

    @pytest.mark.parametrize("created_at", [None, ""])
    def test_missing_creation_time(self, created_at):
        data = {
            "name": "Awa",
            "email": "awa@acme.io",
            "permissions": {"invoices": True},
            "account_id": "acct-1",
            "credential_id": "cred-1",
            "created_at": created_at,
        }

        with pytest.raises(ValidationError):
            SubUser.from_document("su-1", data)

    def test_inactive_status(self):
        data = {
            "name": "Awa",
            "email": "awa@acme.io",
            "permissions": {"invoices": True},
            "status": "inactive",
            "account_id": "acct-1",
            "credential_id": "cred-1",
            "created_at": "2026-01-01T00:00:00Z",
        }

        sub_user = SubUser.from_document("su-1", data)

        assert sub_user.is_active is False
        assert sub_user.role == SubUserRole.SUB_USER


class TestSubUserProfile:

    def test_normalizes_fields(self):
        profile = SubUserProfile(
            name="  Awa Diop ",
            email="Awa@Acme.io",
            permissions={"invoices": True},
        )

        assert profile.name == "Awa Diop"
        assert profile.email == "awa@acme.io"
        assert profile.permissions == PermissionSet(invoices=True)
        assert profile.status == SubUserStatus.ACTIVE

    def test_rejects_role_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(SubUserProfile, {
                "name": "Awa",
                "email": "awa@acme.io",
                "permissions": {"invoices": True},
                "role": "admin",
            })

        assert "role" in exc_info.value.errors

    def test_rejects_bad_email(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(SubUserProfile, {"name": "Awa", "email": "nope", "permissions": {}})

        assert "email" in exc_info.value.errors

    def test_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            parse_input(SubUserProfile, {"name": "  ", "email": "awa@acme.io", "permissions": {}})


class TestSubUserUpdate:

    def test_to_fields_contains_only_set_fields(self):
        update = SubUserUpdate(status=SubUserStatus.INACTIVE)

        assert update.to_fields() == {"status": "inactive"}

    def test_empty_update(self):
        assert SubUserUpdate().is_empty is True

    def test_explicit_none_rejected(self):
        with pytest.raises(ValidationError):
            parse_input(SubUserUpdate, {"name": None})

    def test_with_permissions_keeps_assigned_fields(self):
        update = SubUserUpdate(name="Awa", permissions=PermissionSet(invoices=True, settings=True))

        replaced = update.with_permissions(PermissionSet(invoices=True))

        assert replaced.model_fields_set == {"name", "permissions"}
        assert replaced.to_fields()["permissions"]["settings"] is False
