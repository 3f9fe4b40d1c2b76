"""Sub-user domain entity and its input models.

``SubUser`` is the directory record. ``SubUserProfile`` and ``SubUserUpdate``
are the validated inputs for creation and owner edits; neither can carry
role, owner reference or timestamps.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from ....config.constants import SubUserRole, SubUserStatus
from ....core.exceptions import ValidationError
from ....core.value_objects import AccountId, CredentialId, SubUserId
from ....utils.datetime import parse_iso, to_iso
from ...permissions.entities.permission_set import PermissionSet


@dataclass
class SubUser:
    """Sub-user directory record.

    Owned by exactly one account. Created only together with an identity
    provider registration, whose id is kept in ``credential_id``.
    """

    id: SubUserId
    name: str
    email: str
    permissions: PermissionSet
    account_id: AccountId
    credential_id: CredentialId
    created_at: datetime
    status: SubUserStatus = SubUserStatus.ACTIVE
    role: SubUserRole = SubUserRole.SUB_USER
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    password_reset_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Check if the sub-user may log in."""
        return self.status == SubUserStatus.ACTIVE

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> "SubUser":
        """Build a sub-user from a stored record."""
        try:
            return cls(
                id=SubUserId(document_id),
                name=data["name"],
                email=data["email"],
                permissions=PermissionSet.from_mapping(data.get("permissions") or {}),
                account_id=AccountId(data["account_id"]),
                credential_id=CredentialId(data["credential_id"]),
                created_at=_require_created_at(data),
                status=SubUserStatus(data.get("status", SubUserStatus.ACTIVE.value)),
                role=SubUserRole(data.get("role", SubUserRole.SUB_USER.value)),
                updated_at=parse_iso(data.get("updated_at")),
                last_login_at=parse_iso(data.get("last_login_at")),
                password_reset_at=parse_iso(data.get("password_reset_at")),
            )
        except (KeyError, ValueError) as e:
            raise ValidationError(f"Malformed sub-user record {document_id}: {e}") from e

    def to_document(self) -> Dict[str, Any]:
        """Record form without the id (the store owns ids)."""
        return {
            "name": self.name,
            "email": self.email,
            "permissions": self.permissions.to_dict(),
            "status": self.status.value,
            "role": self.role.value,
            "account_id": self.account_id,
            "credential_id": self.credential_id,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "last_login_at": to_iso(self.last_login_at),
            "password_reset_at": to_iso(self.password_reset_at),
        }


def _require_created_at(data: Mapping[str, Any]) -> datetime:
    # Required for newest-first ordering
    created_at = parse_iso(data["created_at"])
    if created_at is None:
        raise ValueError("created_at is missing")
    return created_at


def _coerce_permissions(value: Any) -> Optional[PermissionSet]:
    if value is None or isinstance(value, PermissionSet):
        return value
    return PermissionSet.from_mapping(value)


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name cannot be empty")
    return value


class SubUserProfile(BaseModel):
    """Profile submitted when creating a sub-user."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    email: EmailStr
    permissions: PermissionSet
    status: SubUserStatus = SubUserStatus.ACTIVE

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("permissions", mode="before")
    @classmethod
    def coerce_permissions(cls, v: Any) -> PermissionSet:
        return _coerce_permissions(v)


class SubUserUpdate(BaseModel):
    """Partial owner edit. Fields left unset are not touched in the store."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    status: Optional[SubUserStatus] = None
    permissions: Optional[PermissionSet] = None

    @field_validator("name", "email", "status", "permissions", mode="before")
    @classmethod
    def reject_explicit_none(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Field cannot be cleared")
        return v

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("permissions", mode="before")
    @classmethod
    def coerce_permissions(cls, v: Any) -> PermissionSet:
        return _coerce_permissions(v)

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def to_fields(self) -> Dict[str, Any]:
        """Document fields for exactly the attributes the caller set."""
        fields: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if isinstance(value, PermissionSet):
                value = value.to_dict()
            elif isinstance(value, SubUserStatus):
                value = value.value
            fields[name] = value
        return fields

    def with_permissions(self, permissions: PermissionSet) -> "SubUserUpdate":
        """Copy with permissions replaced, keeping the set of assigned fields."""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        data["permissions"] = permissions
        return SubUserUpdate(**data)


ModelT = TypeVar("ModelT", SubUserProfile, SubUserUpdate)


def parse_input(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate caller input, reporting failures as the library's ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = {
            ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
            for error in e.errors()
        }
        first = next(iter(errors.items()))
        raise ValidationError(f"Invalid {first[0]}: {first[1]}", errors=errors) from e
