"""Transaction orchestration: fraud gate, lifecycle, settlement and audit."""

from __future__ import annotations

import asyncio
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel

from fortress.core.errors import (
    ForbiddenError,
    FraudBlockedError,
    InvalidTransitionError,
    NotFoundError,
    SettlementFailedError,
    ValidationError,
)
from fortress.core.locks import KeyedLock
from fortress.core.logging import get_logger
from fortress.core.rbac import (
    TRANSACTION_APPROVE,
    TRANSACTION_CREATE,
    TRANSACTION_READ_ALL,
    TRANSACTION_READ_OWN,
    TRANSACTION_REJECT,
    has_permission,
)
from fortress.domain.models.transaction import (
    AuditAction,
    Decision,
    FraudCandidate,
    FraudCheckResult,
    Principal,
    RiskLevel,
    Transaction,
    TransactionStatus,
)
from fortress.services.audit_ledger import AuditLedger
from fortress.services.fraud_detector import FraudDetector
from fortress.services.transaction_store import TransactionStore
from fortress.settlement.executor import SettlementExecutor, SettlementResult, SettlementStatus
from fortress.settlement.wallet import is_valid_wallet_address

logger = get_logger(__name__)

DECISION_PERMISSIONS = {
    Decision.APPROVE: TRANSACTION_APPROVE,
    Decision.REJECT: TRANSACTION_REJECT,
}


class TransactionCreation(BaseModel):
    transaction: Transaction
    fraud_check: FraudCheckResult


def _require(principal: Principal, permission: str) -> None:
    if not has_permission(principal.role, permission):
        logger.warning(
            "Access denied",
            principal_id=principal.id,
            role=principal.role.value,
            required_permission=permission,
        )
        raise ForbiddenError(
            "Insufficient permissions",
            details={"required_permission": permission},
        )


class TransactionService:
    """Admits, decides and reads transactions, recording every outcome in the ledger."""

    def __init__(
        self,
        store: TransactionStore,
        ledger: AuditLedger,
        fraud_detector: FraudDetector,
        settlement_executor: SettlementExecutor,
        settlement_timeout_seconds: float = 10.0,
    ):
        self.store = store
        self.ledger = ledger
        self.fraud_detector = fraud_detector
        self.settlement_executor = settlement_executor
        self.settlement_timeout_seconds = settlement_timeout_seconds
        self._decision_locks = KeyedLock()

    async def create_transaction(
        self,
        principal: Principal,
        amount: Decimal,
        recipient: str,
        description: str,
    ) -> TransactionCreation:
        """Screen and admit a transfer request.

        High-risk requests are recorded as blocked and refused with
        FraudBlockedError; no transaction record is created for them.
        """
        _require(principal, TRANSACTION_CREATE)

        try:
            amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError("Invalid amount", details={"amount": str(amount)}) from None
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Invalid amount", details={"amount": str(amount)})
        if not is_valid_wallet_address(recipient):
            raise ValidationError("Invalid recipient address", details={"recipient": recipient})
        if recipient.lower() == principal.wallet_address.lower():
            raise ValidationError(
                "Recipient must differ from the sending wallet",
                details={"recipient": recipient},
            )
        if not description or not description.strip():
            raise ValidationError("Description required")

        history = await self.store.history_for(principal.id)
        fraud_check = await self.fraud_detector.check(
            FraudCandidate(
                wallet_address=principal.wallet_address,
                recipient=recipient,
                amount=amount,
            ),
            history,
        )

        if fraud_check.risk_level == RiskLevel.HIGH:
            await self.ledger.append(
                AuditAction.TRANSACTION_BLOCKED,
                principal.id,
                principal.wallet_address,
                None,
                {
                    "reason": "Fraud detection",
                    "flags": list(fraud_check.flags),
                    "risk_level": fraud_check.risk_level.value,
                },
            )
            logger.warning(
                "Transaction blocked by fraud screening",
                principal_id=principal.id,
                flags=fraud_check.flags,
            )
            raise FraudBlockedError(
                "Transaction blocked due to security concerns",
                details={
                    "flags": list(fraud_check.flags),
                    "risk_level": fraud_check.risk_level.value,
                },
            )

        created = await self.store.create(
            principal_id=principal.id,
            wallet_address=principal.wallet_address,
            amount=amount,
            recipient=recipient,
            description=description,
        )
        pending = await self.store.transition(created.id, TransactionStatus.PENDING)

        await self.ledger.append(
            AuditAction.TRANSACTION_CREATED,
            principal.id,
            principal.wallet_address,
            pending.id,
            {
                "amount": str(amount),
                "recipient": pending.recipient,
                "risk_level": fraud_check.risk_level.value,
            },
        )
        return TransactionCreation(transaction=pending, fraud_check=fraud_check)

    async def decide(
        self,
        transaction_id: str,
        reviewer: Principal,
        decision: Decision,
    ) -> Transaction:
        """Approve or reject a pending transaction.

        Decisions on one transaction are serialized, settlement call included;
        a second decision observes the resolved status and fails with
        InvalidTransitionError.
        """
        try:
            decision = Decision(decision)
        except ValueError:
            raise ValidationError("Invalid decision", details={"action": str(decision)}) from None
        _require(reviewer, DECISION_PERMISSIONS[decision])

        async with self._decision_locks.hold(transaction_id):
            transaction = await self.store.get_transaction(transaction_id)
            if transaction is None:
                raise NotFoundError(
                    "Transaction not found", details={"transaction_id": transaction_id}
                )
            if transaction.status != TransactionStatus.PENDING:
                raise InvalidTransitionError(
                    "Can only approve/reject pending transactions",
                    details={
                        "transaction_id": transaction_id,
                        "current_status": transaction.status.value,
                    },
                )

            if decision == Decision.REJECT:
                return await self._reject(transaction, reviewer)
            return await self._approve(transaction, reviewer)

    async def _reject(self, transaction: Transaction, reviewer: Principal) -> Transaction:
        rejected = await self.store.transition(
            transaction.id, TransactionStatus.REJECTED, reviewed_by=reviewer.id
        )
        await self.ledger.append(
            AuditAction.TRANSACTION_REJECTED,
            reviewer.id,
            reviewer.wallet_address,
            transaction.id,
            {},
        )
        return rejected

    async def _approve(self, transaction: Transaction, reviewer: Principal) -> Transaction:
        result = await self._settle(transaction)

        if not result.confirmed:
            await self.store.transition(
                transaction.id,
                TransactionStatus.REJECTED,
                reviewed_by=reviewer.id,
                settlement_reference=result.reference,
            )
            await self.ledger.append(
                AuditAction.TRANSACTION_BLOCKCHAIN_FAILED,
                reviewer.id,
                reviewer.wallet_address,
                transaction.id,
                {
                    "blockchain_status": result.status.value,
                    "settlement_reference": result.reference,
                },
            )
            logger.error(
                "Settlement failed",
                transaction_id=transaction.id,
                blockchain_status=result.status.value,
            )
            raise SettlementFailedError(
                "Blockchain execution failed",
                details={
                    "transaction_id": transaction.id,
                    "blockchain_status": result.status.value,
                    "settlement_reference": result.reference,
                },
            )

        await self.store.transition(
            transaction.id,
            TransactionStatus.APPROVED,
            reviewed_by=reviewer.id,
            settlement_reference=result.reference,
        )
        completed = await self.store.transition(transaction.id, TransactionStatus.COMPLETED)
        await self.ledger.append(
            AuditAction.TRANSACTION_APPROVED,
            reviewer.id,
            reviewer.wallet_address,
            transaction.id,
            {
                "settlement_reference": result.reference,
                "block_number": result.block_number,
            },
        )
        return completed

    async def _settle(self, transaction: Transaction) -> SettlementResult:
        """Run the executor with a bounded wait; hangs and errors become failures."""
        try:
            return await asyncio.wait_for(
                self.settlement_executor.execute(
                    transaction.wallet_address,
                    transaction.recipient,
                    transaction.amount,
                ),
                timeout=self.settlement_timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                "Settlement timed out",
                transaction_id=transaction.id,
                timeout_seconds=self.settlement_timeout_seconds,
            )
            return SettlementResult(status=SettlementStatus.TIMEOUT)
        except Exception as e:
            logger.error(
                "Settlement executor error",
                transaction_id=transaction.id,
                error=str(e),
            )
            return SettlementResult(status=SettlementStatus.ERROR)

    async def get_transaction(self, transaction_id: str, principal: Principal) -> Transaction:
        transaction = await self.store.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found", details={"transaction_id": transaction_id})

        can_view_all = has_permission(principal.role, TRANSACTION_READ_ALL)
        can_view_own = has_permission(principal.role, TRANSACTION_READ_OWN)
        if not can_view_all and not (can_view_own and transaction.principal_id == principal.id):
            raise ForbiddenError("Access denied", details={"transaction_id": transaction_id})
        return transaction

    async def list_transactions(self, principal: Principal) -> list[Transaction]:
        if has_permission(principal.role, TRANSACTION_READ_ALL):
            return await self.store.list_transactions()
        if has_permission(principal.role, TRANSACTION_READ_OWN):
            return await self.store.list_transactions(principal_id=principal.id)
        raise ForbiddenError("Access denied")

    async def list_pending(self, principal: Principal) -> list[Transaction]:
        _require(principal, TRANSACTION_APPROVE)
        return await self.store.list_pending()
