"""Tests for the permission set entity."""

from dataclasses import FrozenInstanceError

import pytest

from neo_access.config.constants import Capability
from neo_access.core.exceptions import ValidationError
from neo_access.features.permissions.entities.permission_set import PermissionSet


class TestPermissionSet:
    """Test permission set shape and conversions."""

    def test_defaults_grant_nothing(self):
        permissions = PermissionSet()

        assert permissions.granted() == frozenset()
        assert all(value is False for value in permissions.to_dict().values())

    def test_to_dict_has_every_capability(self):
        assert set(PermissionSet().to_dict()) == {c.value for c in Capability}

    def test_from_mapping_accepts_partial_mapping(self):
        permissions = PermissionSet.from_mapping({"invoices": True, "reports": True})

        assert permissions.granted() == {Capability.INVOICES, Capability.REPORTS}

    def test_from_mapping_accepts_legacy_keys(self):
        permissions = PermissionSet.from_mapping({"stockManagement": True, "hrManagement": True})

        assert permissions.stock_management is True
        assert permissions.hr_management is True

    def test_from_mapping_rejects_unknown_key(self):
        with pytest.raises(ValidationError) as exc_info:
            PermissionSet.from_mapping({"invoices": True, "payroll": True})

        assert exc_info.value.field == "permissions.payroll"

    def test_rejects_non_boolean_flag(self):
        with pytest.raises(ValidationError):
            PermissionSet(invoices="yes")

    def test_from_mapping_passes_instances_through(self):
        permissions = PermissionSet.only(Capability.QUOTES)

        assert PermissionSet.from_mapping(permissions) is permissions

    def test_full_excludes_settings(self):
        permissions = PermissionSet.full()

        assert permissions.settings is False
        assert len(permissions.granted()) == len(Capability) - 1

    def test_without_settings(self):
        permissions = PermissionSet(invoices=True, settings=True)

        cleared = permissions.without_settings()

        assert cleared.settings is False
        assert cleared.invoices is True
        assert permissions.settings is True

    def test_is_immutable(self):
        permissions = PermissionSet()

        with pytest.raises(FrozenInstanceError):
            permissions.invoices = True
