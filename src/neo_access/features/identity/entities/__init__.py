"""Identity provider entities."""

from .protocols import IdentityProvider, VerifiedIdentity

__all__ = [
    "IdentityProvider",
    "VerifiedIdentity",
]
