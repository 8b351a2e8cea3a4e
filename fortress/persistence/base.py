"""Base classes for the repository layer.

Repositories only store and return records. Ordering guarantees, state
machine rules and hashing live in the services that own the records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fortress.domain.models.transaction import (
    AuditLogEntry,
    Principal,
    Transaction,
    TransactionStatus,
)


def clamp_page(limit: int, offset: int, max_limit: int) -> tuple[int, int]:
    """Clamp pagination arguments into range instead of rejecting them."""
    return max(0, min(limit, max_limit)), max(0, offset)


class TransactionRepository(ABC):
    """Storage for transaction records (description held as ciphertext)."""

    @abstractmethod
    async def add(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    async def get(self, transaction_id: str) -> Transaction | None: ...

    @abstractmethod
    async def update(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    async def list(
        self,
        principal_id: str | None = None,
        status: TransactionStatus | None = None,
    ) -> list[Transaction]:
        """List records newest first, optionally filtered."""


class AuditLogRepository(ABC):
    """Append-only storage for audit entries, kept in append order."""

    @abstractmethod
    async def append(self, entry: AuditLogEntry) -> AuditLogEntry: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def last(self) -> AuditLogEntry | None: ...

    @abstractmethod
    async def all(self) -> list[AuditLogEntry]:
        """All entries oldest first."""

    @abstractmethod
    async def page(self, limit: int, offset: int) -> list[AuditLogEntry]:
        """Entries newest first."""


class PrincipalRepository(ABC):
    """Storage for principals keyed by normalized wallet address."""

    @abstractmethod
    async def get_by_wallet(self, wallet_address: str) -> Principal | None: ...

    @abstractmethod
    async def get_by_id(self, principal_id: str) -> Principal | None: ...

    @abstractmethod
    async def save(self, principal: Principal) -> Principal: ...
