"""Permission set entity.

A fixed-shape record of boolean capability flags. The shape is closed: every
capability in ``Capability`` is one field, nothing else is accepted.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, FrozenSet, Mapping

from ....config.constants import Capability
from ....core.exceptions import ValidationError

# Keys used by earlier document versions
_LEGACY_KEYS = {
    "stockManagement": Capability.STOCK_MANAGEMENT.value,
    "hrManagement": Capability.HR_MANAGEMENT.value,
}


@dataclass(frozen=True)
class PermissionSet:
    """Capability flags of a sub-user. All flags default to False."""

    invoices: bool = False
    quotes: bool = False
    clients: bool = False
    products: bool = False
    stock_management: bool = False
    reports: bool = False
    hr_management: bool = False
    settings: bool = False

    def __post_init__(self):
        for f in fields(self):
            if not isinstance(getattr(self, f.name), bool):
                raise ValidationError(
                    f"Permission '{f.name}' must be a boolean",
                    field=f"permissions.{f.name}",
                )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "PermissionSet":
        """Build a permission set from a document mapping.

        Unknown keys are rejected so a typo can never silently drop a grant.
        """
        if isinstance(mapping, PermissionSet):
            return mapping
        if not isinstance(mapping, Mapping):
            raise ValidationError("Permissions must be a mapping", field="permissions")

        known = {f.name for f in fields(cls)}
        values: Dict[str, bool] = {}
        for key, value in mapping.items():
            name = _LEGACY_KEYS.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown permission '{key}'", field=f"permissions.{key}")
            values[name] = value
        return cls(**values)

    @classmethod
    def only(cls, *capabilities: Capability) -> "PermissionSet":
        """Permission set granting exactly the given capabilities."""
        return cls(**{Capability(c).value: True for c in capabilities})

    @classmethod
    def full(cls) -> "PermissionSet":
        """Every capability except settings."""
        return cls.only(*(c for c in Capability if c is not Capability.SETTINGS))

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def allows(self, capability: Capability) -> bool:
        return getattr(self, Capability(capability).value)

    def granted(self) -> FrozenSet[Capability]:
        """Capabilities set to True."""
        return frozenset(c for c in Capability if self.allows(c))

    def without_settings(self) -> "PermissionSet":
        if not self.settings:
            return self
        return replace(self, settings=False)
