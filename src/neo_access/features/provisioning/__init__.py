"""Sub-user provisioning across the identity provider and the directory."""

from .entities import DeletionResult, PasswordResetResult
from .services import (
    AccountProvisioner,
    OrphanLedger,
    ProvisioningSaga,
    SagaStep,
    generate_password,
)

__all__ = [
    "AccountProvisioner",
    "DeletionResult",
    "OrphanLedger",
    "PasswordResetResult",
    "ProvisioningSaga",
    "SagaStep",
    "generate_password",
]
