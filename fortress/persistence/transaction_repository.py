"""In-memory transaction repository.

Records are keyed by generated id. Copies go in and out so callers can
never mutate a stored record except through update().
"""

from __future__ import annotations

from fortress.domain.models.transaction import Transaction, TransactionStatus
from fortress.persistence.base import TransactionRepository


class InMemoryTransactionRepository(TransactionRepository):
    """Transaction arena for tests and single-process deployments."""

    def __init__(self) -> None:
        self._records: dict[str, Transaction] = {}

    async def add(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._records:
            raise KeyError(f"Transaction {transaction.id} already exists")
        self._records[transaction.id] = transaction.model_copy(deep=True)
        return transaction.model_copy(deep=True)

    async def get(self, transaction_id: str) -> Transaction | None:
        record = self._records.get(transaction_id)
        return record.model_copy(deep=True) if record else None

    async def update(self, transaction: Transaction) -> Transaction:
        if transaction.id not in self._records:
            raise KeyError(f"Transaction {transaction.id} does not exist")
        self._records[transaction.id] = transaction.model_copy(deep=True)
        return transaction.model_copy(deep=True)

    async def list(
        self,
        principal_id: str | None = None,
        status: TransactionStatus | None = None,
    ) -> list[Transaction]:
        records = [
            r
            for r in self._records.values()
            if (principal_id is None or r.principal_id == principal_id)
            and (status is None or r.status == status)
        ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in records]
