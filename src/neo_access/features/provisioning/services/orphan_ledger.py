"""Ledger of identity registrations left without a directory record."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from ....core.exceptions import IdentityNotFound, RevocationUnsupported
from ....core.value_objects import AccountId, CredentialId
from ....utils.datetime import Clock, utc_now
from ...identity.entities.protocols import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class OrphanEntry:
    credential_id: CredentialId
    account_id: Optional[AccountId]
    reason: str
    recorded_at: datetime
    attempts: int = 0
    last_error: Optional[str] = None


@dataclass(frozen=True)
class ReconcileReport:
    revoked: List[CredentialId]
    already_gone: List[CredentialId]
    pending: List[CredentialId]


class OrphanLedger:
    """Process-local record of orphaned identities awaiting revocation.

    Recording the same credential twice keeps one entry. ``reconcile`` can be
    run repeatedly; it only ever removes entries.
    """

    def __init__(self, clock: Clock = utc_now):
        self._entries: Dict[CredentialId, OrphanEntry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, credential_id: str) -> bool:
        return credential_id in self._entries

    @property
    def entries(self) -> List[OrphanEntry]:
        return list(self._entries.values())

    def record(self, credential_id: CredentialId, account_id: Optional[AccountId], reason: str) -> OrphanEntry:
        entry = self._entries.get(credential_id)
        if entry is None:
            entry = OrphanEntry(
                credential_id=credential_id,
                account_id=account_id,
                reason=reason,
                recorded_at=self._clock(),
            )
            self._entries[credential_id] = entry
            logger.warning(f"Recorded orphaned identity {credential_id} for account {account_id}: {reason}")
        return entry

    async def reconcile(self, identity_provider: IdentityProvider) -> ReconcileReport:
        """Retry revocation for every recorded orphan."""
        revoked: List[CredentialId] = []
        already_gone: List[CredentialId] = []
        pending: List[CredentialId] = []

        async with self._lock:
            for credential_id, entry in list(self._entries.items()):
                entry.attempts += 1
                try:
                    await identity_provider.revoke(credential_id)
                except IdentityNotFound:
                    already_gone.append(credential_id)
                    del self._entries[credential_id]
                    continue
                except RevocationUnsupported as e:
                    entry.last_error = str(e)
                    pending.append(credential_id)
                    continue
                except Exception as e:
                    logger.warning(f"Revocation retry failed for {credential_id}: {e}")
                    entry.last_error = str(e)
                    pending.append(credential_id)
                    continue
                revoked.append(credential_id)
                del self._entries[credential_id]

        if revoked or already_gone:
            logger.info(
                f"Orphan reconciliation: {len(revoked)} revoked, "
                f"{len(already_gone)} already gone, {len(pending)} pending"
            )
        return ReconcileReport(revoked=revoked, already_gone=already_gone, pending=pending)
