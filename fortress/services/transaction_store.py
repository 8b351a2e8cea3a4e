"""Transaction store enforcing the transaction lifecycle.

    created -> pending -> approved -> completed
    pending -> rejected
    approved -> rejected

Only status, settlement reference and reviewer fields ever change. The
description is encrypted before it reaches the repository and decrypted
on every read, so callers never see ciphertext.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from fortress.core.crypto import FieldCipher
from fortress.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from fortress.core.locks import KeyedLock
from fortress.core.logging import get_logger
from fortress.domain.models.transaction import Transaction, TransactionStatus
from fortress.persistence.base import TransactionRepository
from fortress.persistence.transaction_repository import InMemoryTransactionRepository

logger = get_logger(__name__)

# Valid status transitions for transactions
VALID_STATUS_TRANSITIONS: dict[TransactionStatus, list[TransactionStatus]] = {
    TransactionStatus.CREATED: [TransactionStatus.PENDING],
    TransactionStatus.PENDING: [TransactionStatus.APPROVED, TransactionStatus.REJECTED],
    TransactionStatus.APPROVED: [TransactionStatus.COMPLETED, TransactionStatus.REJECTED],
    TransactionStatus.REJECTED: [],
    TransactionStatus.COMPLETED: [],
}


class TransactionStore:
    """Sole owner and mutator of transaction records."""

    def __init__(
        self,
        cipher: FieldCipher,
        repository: TransactionRepository | None = None,
    ):
        self.cipher = cipher
        self.repository = repository or InMemoryTransactionRepository()
        self._record_locks = KeyedLock()

    @staticmethod
    def is_valid_transition(current: TransactionStatus, new: TransactionStatus) -> bool:
        return new in VALID_STATUS_TRANSITIONS.get(current, [])

    def _decrypted(self, transaction: Transaction) -> Transaction:
        return transaction.model_copy(
            update={"description": self.cipher.decrypt(transaction.description)}
        )

    async def create(
        self,
        principal_id: str,
        wallet_address: str,
        amount: Decimal,
        recipient: str,
        description: str,
    ) -> Transaction:
        """Store a new transaction in the created state."""
        if amount <= 0:
            raise ValidationError("Amount must be positive", details={"amount": str(amount)})

        transaction = Transaction(
            principal_id=principal_id,
            wallet_address=wallet_address.lower(),
            amount=amount,
            recipient=recipient.lower(),
            description=self.cipher.encrypt(description),
        )
        stored = await self.repository.add(transaction)
        logger.info("Transaction created", transaction_id=stored.id, principal_id=principal_id)
        return self._decrypted(stored)

    async def transition(
        self,
        transaction_id: str,
        new_status: TransactionStatus,
        *,
        reviewed_by: str | None = None,
        settlement_reference: str | None = None,
    ) -> Transaction:
        """Move a transaction to new_status if the lifecycle allows it.

        The status check and the write happen under the record's lock, so two
        callers racing from the same source status cannot both succeed.
        """
        async with self._record_locks.hold(transaction_id):
            transaction = await self.repository.get(transaction_id)
            if transaction is None:
                raise NotFoundError(
                    "Transaction not found", details={"transaction_id": transaction_id}
                )

            current = transaction.status
            if not self.is_valid_transition(current, new_status):
                raise InvalidTransitionError(
                    f"Invalid status transition from {current.value} to {new_status.value}",
                    details={
                        "transaction_id": transaction_id,
                        "current_status": current.value,
                        "requested_status": new_status.value,
                        "valid_transitions": [
                            s.value for s in VALID_STATUS_TRANSITIONS.get(current, [])
                        ],
                    },
                )

            now = datetime.now(UTC)
            update: dict[str, object] = {"status": new_status, "updated_at": now}
            if reviewed_by is not None:
                update["reviewed_by"] = reviewed_by
                update["reviewed_at"] = now
            if settlement_reference is not None:
                update["settlement_reference"] = settlement_reference

            stored = await self.repository.update(transaction.model_copy(update=update))

        logger.info(
            "Transaction status changed",
            transaction_id=transaction_id,
            from_status=current.value,
            to_status=new_status.value,
        )
        return self._decrypted(stored)

    async def get_transaction(self, transaction_id: str) -> Transaction | None:
        transaction = await self.repository.get(transaction_id)
        return self._decrypted(transaction) if transaction else None

    async def list_transactions(
        self,
        principal_id: str | None = None,
        status: TransactionStatus | None = None,
    ) -> list[Transaction]:
        """Transactions newest first, decrypted."""
        records = await self.repository.list(principal_id=principal_id, status=status)
        return [self._decrypted(r) for r in records]

    async def list_pending(self) -> list[Transaction]:
        return await self.list_transactions(status=TransactionStatus.PENDING)

    async def history_for(self, principal_id: str) -> list[Transaction]:
        """All of a principal's transactions for fraud screening (descriptions stay encrypted)."""
        return await self.repository.list(principal_id=principal_id)
