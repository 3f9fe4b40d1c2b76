"""Provisioning entities."""

from .results import DeletionResult, PasswordResetResult

__all__ = [
    "DeletionResult",
    "PasswordResetResult",
]
