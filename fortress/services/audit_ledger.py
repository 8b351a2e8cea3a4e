"""Append-only, hash-chained audit ledger.

Entry i stores sha256(canonical(entry i) + hash(entry i-1)); entry 0 chains
from GENESIS_HASH. Any edit or deletion of a stored entry invalidates every
later hash, which verify_integrity() detects by replaying from genesis.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from pydantic import JsonValue

from fortress.core.crypto import GENESIS_HASH, canonical_audit_payload, chain_hash
from fortress.core.errors import IntegrityViolationError, ValidationError
from fortress.core.logging import get_logger
from fortress.domain.models.transaction import AuditAction, AuditLogEntry
from fortress.persistence.audit_repository import InMemoryAuditLogRepository
from fortress.persistence.base import AuditLogRepository, clamp_page

logger = get_logger(__name__)


def compute_entry_hash(entry: AuditLogEntry, previous_hash: str) -> str:
    """Recompute an entry's chain hash from its stored fields."""
    data = canonical_audit_payload(
        action=entry.action.value,
        actor_id=entry.actor_id,
        actor_wallet=entry.actor_wallet,
        target_id=entry.target_id,
        metadata=entry.metadata,
        timestamp=entry.timestamp,
    )
    return chain_hash(data, previous_hash)


class AuditLedger:
    """Owns audit entries and the private last-hash cursor."""

    def __init__(
        self,
        repository: AuditLogRepository | None = None,
        max_page_size: int = 500,
    ):
        self.repository = repository or InMemoryAuditLogRepository()
        self.max_page_size = max_page_size
        self._append_lock = asyncio.Lock()
        self._last_hash: str | None = None
        self._next_sequence: int | None = None

    async def _load_cursor(self) -> None:
        # Resume from whatever the repository already holds
        last = await self.repository.last()
        self._last_hash = last.hash if last else GENESIS_HASH
        self._next_sequence = last.sequence + 1 if last else 0

    async def append(
        self,
        action: AuditAction | str,
        actor_id: str,
        actor_wallet: str,
        target_id: str | None = None,
        metadata: dict[str, JsonValue] | None = None,
    ) -> AuditLogEntry:
        """Hash, store and return a new entry chained to the current last hash."""
        try:
            action = AuditAction(action)
        except ValueError:
            raise ValidationError("Unknown audit action", details={"action": str(action)}) from None
        metadata = dict(metadata or {})
        actor_wallet = actor_wallet.lower()

        async with self._append_lock:
            if self._last_hash is None or self._next_sequence is None:
                await self._load_cursor()

            entry = AuditLogEntry(
                sequence=self._next_sequence,
                action=action,
                actor_id=actor_id,
                actor_wallet=actor_wallet,
                target_id=target_id,
                metadata=metadata,
                timestamp=datetime.now(UTC),
                hash="",
            )
            entry = entry.model_copy(update={"hash": compute_entry_hash(entry, self._last_hash)})
            await self.repository.append(entry)
            self._last_hash = entry.hash
            self._next_sequence = entry.sequence + 1

        logger.debug(
            "Audit entry appended",
            action=action.value,
            sequence=entry.sequence,
            target_id=target_id,
        )
        return entry

    async def list(self, limit: int = 100, offset: int = 0) -> list[AuditLogEntry]:
        """Entries newest first. Out-of-range arguments are clamped."""
        limit, offset = clamp_page(limit, offset, self.max_page_size)
        return await self.repository.page(limit, offset)

    async def list_by_actor(self, actor_id: str) -> list[AuditLogEntry]:
        entries = await self.repository.all()
        return [e for e in reversed(entries) if e.actor_id == actor_id]

    async def count(self) -> int:
        return await self.repository.count()

    async def find_first_violation(self) -> int | None:
        """Sequence position of the first entry whose hash does not verify."""
        previous_hash = GENESIS_HASH
        for position, entry in enumerate(await self.repository.all()):
            if entry.sequence != position or entry.hash != compute_entry_hash(entry, previous_hash):
                return position
            previous_hash = entry.hash
        return None

    async def verify_integrity(self) -> bool:
        """Replay the chain from genesis. An empty ledger is valid."""
        broken_at = await self.find_first_violation()
        if broken_at is not None:
            logger.error("Audit chain integrity violation", broken_at=broken_at)
            return False
        return True

    async def assert_integrity(self) -> None:
        broken_at = await self.find_first_violation()
        if broken_at is not None:
            logger.error("Audit chain integrity violation", broken_at=broken_at)
            raise IntegrityViolationError(
                "Audit chain integrity check failed",
                details={"broken_at_sequence": broken_at},
            )

