"""Owner (paying) accounts."""

from .entities import OwnerAccount
from .repositories import OwnerAccountRepository

__all__ = ["OwnerAccount", "OwnerAccountRepository"]
