"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

# Add package root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing the service
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECURITY_TOKEN_SECRET", "test-token-secret-for-unit-tests-only!!")
os.environ.setdefault("SECURITY_ENCRYPTION_KEY", "test-encryption-key")

from fortress.core.config import FraudConfig  # noqa: E402
from fortress.core.crypto import FieldCipher  # noqa: E402
from fortress.domain.models.transaction import Principal, Role  # noqa: E402
from fortress.services.audit_ledger import AuditLedger  # noqa: E402
from fortress.services.fraud_detector import FraudDetector  # noqa: E402
from fortress.services.principal_service import PrincipalService  # noqa: E402
from fortress.services.transaction_service import TransactionService  # noqa: E402
from fortress.services.transaction_store import TransactionStore  # noqa: E402
from fortress.settlement.executor import (  # noqa: E402
    SettlementResult,
    SettlementStatus,
    generate_settlement_reference,
)

# =============================================================================
# Wallets
# =============================================================================

STANDARD_WALLET = "0x" + "1" * 40
OTHER_STANDARD_WALLET = "0x" + "2" * 40
REVIEWER_WALLET = "0x1234567890123456789012345678901234567890"
AUDITOR_WALLET = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
RECIPIENT_WALLET = "0x" + "9" * 40
OTHER_RECIPIENT_WALLET = "0x" + "8" * 40


# =============================================================================
# Deterministic collaborators
# =============================================================================


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedSettlementExecutor:
    """Settlement executor returning a fixed outcome, optionally after a delay."""

    def __init__(
        self,
        status: SettlementStatus = SettlementStatus.CONFIRMED,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.status = status
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, str, Decimal]] = []

    async def execute(self, sender_wallet, recipient_wallet, amount) -> SettlementResult:
        self.calls.append((sender_wallet, recipient_wallet, amount))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SettlementResult(
            reference=generate_settlement_reference(),
            status=self.status,
            block_number=19_000_001,
            gas_used=21_000,
        )


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cipher() -> FieldCipher:
    return FieldCipher("test-encryption-key")


@pytest.fixture
def ledger() -> AuditLedger:
    return AuditLedger(max_page_size=500)


@pytest.fixture
def store(cipher: FieldCipher) -> TransactionStore:
    return TransactionStore(cipher)


@pytest.fixture
def fraud_detector(clock: FakeClock) -> FraudDetector:
    return FraudDetector(FraudConfig(), clock=clock)


@pytest.fixture
def settlement_executor() -> FixedSettlementExecutor:
    return FixedSettlementExecutor()


@pytest.fixture
def service(
    store: TransactionStore,
    ledger: AuditLedger,
    fraud_detector: FraudDetector,
    settlement_executor: FixedSettlementExecutor,
) -> TransactionService:
    return TransactionService(
        store=store,
        ledger=ledger,
        fraud_detector=fraud_detector,
        settlement_executor=settlement_executor,
        settlement_timeout_seconds=1.0,
    )


@pytest.fixture
def principal_service(ledger: AuditLedger) -> PrincipalService:
    return PrincipalService(
        ledger=ledger,
        preset_roles={REVIEWER_WALLET: "reviewer", AUDITOR_WALLET: "auditor"},
    )


# =============================================================================
# Principal Fixtures
# =============================================================================


@pytest.fixture
def standard_principal() -> Principal:
    return Principal(id="principal-standard", wallet_address=STANDARD_WALLET, role=Role.STANDARD)


@pytest.fixture
def other_standard_principal() -> Principal:
    return Principal(
        id="principal-standard-2", wallet_address=OTHER_STANDARD_WALLET, role=Role.STANDARD
    )


@pytest.fixture
def reviewer_principal() -> Principal:
    return Principal(id="principal-reviewer", wallet_address=REVIEWER_WALLET, role=Role.REVIEWER)


@pytest.fixture
def auditor_principal() -> Principal:
    return Principal(id="principal-auditor", wallet_address=AUDITOR_WALLET, role=Role.AUDITOR)
