from .account_repository import OwnerAccountRepository

__all__ = ["OwnerAccountRepository"]
