"""In-memory append-only audit repository."""

from fortress.domain.models.transaction import AuditLogEntry
from fortress.persistence.base import AuditLogRepository


class InMemoryAuditLogRepository(AuditLogRepository):
    """Audit entries in append order. There is no update or delete."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        if entry.sequence != len(self._entries):
            raise ValueError(
                f"Out-of-order append: sequence {entry.sequence}, expected {len(self._entries)}"
            )
        self._entries.append(entry)
        return entry

    async def count(self) -> int:
        return len(self._entries)

    async def last(self) -> AuditLogEntry | None:
        return self._entries[-1] if self._entries else None

    async def all(self) -> list[AuditLogEntry]:
        return list(self._entries)

    async def page(self, limit: int, offset: int) -> list[AuditLogEntry]:
        newest_first = self._entries[::-1]
        return newest_first[offset : offset + limit]
