"""
Identifier value objects.

Type-safe wrappers around string identifiers. Directory and account ids are
assigned by the document store; credential ids by the identity provider, so
none of them is assumed to be a UUID.
"""

from typing import NewType

from ...utils.uuid import generate_uuid_v7

# Owning (paying) account
AccountId = NewType('AccountId', str)

# Directory record of a sub-user
SubUserId = NewType('SubUserId', str)

# Identity-provider registration
CredentialId = NewType('CredentialId', str)

# Key of a session-scoped permission cache entry
SessionKey = NewType('SessionKey', str)


def create_session_key() -> SessionKey:
    """Generate a new time-ordered session key."""
    return SessionKey(generate_uuid_v7())


def require_identifier(value: str, kind: str) -> str:
    """
    Validate that an identifier is a non-blank string.

    Args:
        value: Identifier to check
        kind: Human-readable identifier kind for the error message

    Returns:
        The identifier, stripped of surrounding whitespace

    Raises:
        ValueError: If the identifier is empty or not a string
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid {kind}: {value!r}")
    return value.strip()
