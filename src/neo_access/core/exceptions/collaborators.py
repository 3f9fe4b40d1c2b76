"""Exceptions raised by the identity provider and document store adapters."""

from typing import Optional

from .base import AccessControlError


# Identity Provider Errors
class IdentityProviderError(AccessControlError):
    """Base class for identity provider errors."""
    pass


class EmailInUse(IdentityProviderError):
    """Raised when an identity already exists for the email."""
    pass


class WeakPassword(IdentityProviderError):
    """Raised when the provider's password policy rejects a password."""
    pass


class InvalidCredentials(IdentityProviderError):
    """Raised when email and password do not verify."""
    pass


class TooManyAttempts(IdentityProviderError):
    """Raised when the provider is throttling login attempts."""

    def __init__(self, message: str = "Too many attempts", retry_after: Optional[int] = None):
        super().__init__(message, details={"retry_after": retry_after})
        self.retry_after = retry_after


class RevocationUnsupported(IdentityProviderError):
    """Raised when the provider cannot delete identities from this process."""
    pass


class RotationUnsupported(IdentityProviderError):
    """Raised when the provider cannot set passwords from this process."""
    pass


class IdentityNotFound(IdentityProviderError):
    """Raised when a credential id is unknown to the provider."""
    pass


class IdentityProviderUnavailable(IdentityProviderError):
    """Raised when the provider cannot be reached or fails unexpectedly."""
    pass


# Document Store Errors
class DocumentStoreError(AccessControlError):
    """Base class for document store errors."""
    pass


class DocumentNotFound(DocumentStoreError):
    """Raised when updating a document that does not exist."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            f"Document {document_id} not found in {collection}",
            details={"collection": collection, "document_id": document_id},
        )
        self.collection = collection
        self.document_id = document_id


# Permission Cache Errors
class PermissionCacheError(AccessControlError):
    """Raised when the permission cache backend cannot be reached."""
    pass
