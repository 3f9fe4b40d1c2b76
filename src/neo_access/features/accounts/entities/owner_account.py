"""Owner account entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ....config.constants import SubscriptionTier
from ....core.exceptions import ValidationError
from ....core.value_objects import AccountId, CredentialId
from ....utils.datetime import parse_iso, to_iso


@dataclass
class OwnerAccount:
    """The paying administrator that provisions sub-users.

    Holds the system-settings capability implicitly; it is never stored as a
    grant.
    """

    id: AccountId
    name: str
    email: str
    credential_id: CredentialId
    subscription: SubscriptionTier = SubscriptionTier.FREE
    expires_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> "OwnerAccount":
        try:
            return cls(
                id=AccountId(document_id),
                name=data.get("name", ""),
                email=data["email"],
                credential_id=CredentialId(data["credential_id"]),
                subscription=SubscriptionTier(data.get("subscription", SubscriptionTier.FREE.value)),
                expires_at=parse_iso(data.get("expires_at")),
            )
        except (KeyError, ValueError) as e:
            raise ValidationError(f"Malformed account record {document_id}: {e}") from e

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "credential_id": self.credential_id,
            "subscription": self.subscription.value,
            "expires_at": to_iso(self.expires_at),
        }
