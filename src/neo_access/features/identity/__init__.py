"""Identity provider integration."""

from .adapters import KeycloakIdentityProvider, MemoryIdentityProvider
from .entities import IdentityProvider, VerifiedIdentity

__all__ = [
    "IdentityProvider",
    "VerifiedIdentity",
    "KeycloakIdentityProvider",
    "MemoryIdentityProvider",
]
