"""Identity provider adapters."""

from .keycloak_identity import KeycloakIdentityProvider
from .memory_identity import MemoryIdentityProvider

__all__ = [
    "KeycloakIdentityProvider",
    "MemoryIdentityProvider",
]
