"""Value objects for neo-access."""

from .identifiers import (
    AccountId,
    CredentialId,
    SessionKey,
    SubUserId,
    create_session_key,
    require_identifier,
)

__all__ = [
    "AccountId",
    "CredentialId",
    "SessionKey",
    "SubUserId",
    "create_session_key",
    "require_identifier",
]
