"""Identity provider protocol contract."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ....core.value_objects import CredentialId


@dataclass(frozen=True)
class VerifiedIdentity:
    """Outcome of a successful credential check."""

    credential_id: CredentialId
    email: str
    session_token: str


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for the external authentication service.

    Defines ONLY the contract; adapters handle a specific provider
    (Keycloak, in-memory).
    """

    async def register(self, email: str, password: str) -> CredentialId:
        """Register a new identity.

        Args:
            email: Login identifier, globally unique at the provider
            password: Initial password

        Returns:
            Provider-assigned credential id

        Raises:
            EmailInUse: If an identity already exists for the email
            WeakPassword: If the provider's password policy rejects the password
            IdentityProviderUnavailable: If the provider cannot be reached
        """
        ...

    async def verify(self, email: str, password: str) -> VerifiedIdentity:
        """Verify credentials.

        Raises:
            InvalidCredentials: Wrong password or unknown email
            TooManyAttempts: The provider is throttling this login
            IdentityProviderUnavailable: If the provider cannot be reached
        """
        ...

    async def revoke(self, credential_id: CredentialId) -> None:
        """Delete an identity.

        Raises:
            RevocationUnsupported: If this process holds no privileged access
            IdentityNotFound: If the identity is already gone
        """
        ...

    async def rotate_password(self, credential_id: CredentialId, password: str) -> None:
        """Replace an identity's password.

        Raises:
            RotationUnsupported: If this process holds no privileged access
            WeakPassword: If the provider's password policy rejects the password
        """
        ...

    async def update_email(self, credential_id: CredentialId, email: str) -> None:
        """Change an identity's login email.

        Raises:
            EmailInUse: If another identity already uses the email
            RotationUnsupported: If this process holds no privileged access
        """
        ...
