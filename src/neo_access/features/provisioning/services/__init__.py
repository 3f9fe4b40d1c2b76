"""Provisioning services."""

from .account_provisioner import AccountProvisioner
from .orphan_ledger import OrphanEntry, OrphanLedger, ReconcileReport
from .passwords import generate_password
from .saga import CompensationFailure, ProvisioningSaga, SagaStep

__all__ = [
    "AccountProvisioner",
    "CompensationFailure",
    "OrphanEntry",
    "OrphanLedger",
    "ProvisioningSaga",
    "ReconcileReport",
    "SagaStep",
    "generate_password",
]
