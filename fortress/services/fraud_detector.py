"""Fraud and anomaly screening for transfer submissions.

Four independent rules are evaluated in a fixed order and aggregated:

1. Large amount: amount > large_transaction_threshold -> at least MEDIUM
2. Rapid submissions: submissions from the wallet inside the rolling
   window, the current one included, >= rapid_transaction_cap -> HIGH
3. Novel recipient: no prior transfer to the recipient and
   amount > high_value_threshold -> at least MEDIUM
4. Deviation: with at least deviation_min_history prior transfers,
   amount > deviation_multiplier * average -> HIGH

Every amount comparison is strict, so an amount equal to a threshold
never fires. Risk starts LOW and is only raised. A submission passes
unless the final risk is HIGH.

The per-wallet submission window is a cache: losing it only weakens
rule 2. It is pruned and extended exactly once per check, under a
per-wallet lock, whatever the outcome.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from decimal import Decimal, localcontext

from fortress.core.config import FraudConfig
from fortress.core.locks import KeyedLock
from fortress.core.logging import get_logger
from fortress.domain.models.transaction import (
    FraudCandidate,
    FraudCheckResult,
    RiskLevel,
    Transaction,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")


def _fmt(value: Decimal | float) -> str:
    """Render amounts without trailing zeros or exponent noise."""
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return f"{value:g}"


def _fmt_cents(value: Decimal) -> str:
    """Render to cents, widening precision for averages beyond the default 28 digits."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return _fmt(value.quantize(CENT))


class FraudDetector:
    """Rule evaluator with a rolling per-wallet submission history."""

    def __init__(
        self,
        config: FraudConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or FraudConfig()
        self._clock = clock
        self._recent: dict[str, list[float]] = {}
        self._wallet_locks = KeyedLock()

    async def check(
        self,
        candidate: FraudCandidate,
        history: Sequence[Transaction],
    ) -> FraudCheckResult:
        """Screen a submission against the principal's transaction history."""
        cfg = self.config
        wallet = candidate.wallet_address.lower()
        recipient = candidate.recipient.lower()
        amount = candidate.amount
        flags: list[str] = []
        risk = RiskLevel.LOW

        if amount > cfg.large_transaction_threshold:
            flags.append(
                f"Large transaction: {_fmt(amount)} exceeds threshold of "
                f"{_fmt(cfg.large_transaction_threshold)}"
            )
            risk = risk.raise_to(RiskLevel.MEDIUM)

        async with self._wallet_locks.hold(wallet):
            now = self._clock()
            window = self._prune(self._recent.get(wallet, []), now)
            submissions = len(window) + 1
            window.append(now)
            self._recent[wallet] = window

        if submissions >= cfg.rapid_transaction_cap:
            flags.append(
                f"Rapid transactions: {submissions} transactions within "
                f"{_fmt(cfg.rapid_window_seconds)}s"
            )
            risk = risk.raise_to(RiskLevel.HIGH)

        sent_to_recipient = [tx for tx in history if tx.recipient.lower() == recipient]
        if not sent_to_recipient and amount > cfg.high_value_threshold:
            flags.append(
                f"New recipient with high-value transaction: {_fmt(amount)} exceeds "
                f"{_fmt(cfg.high_value_threshold)}"
            )
            risk = risk.raise_to(RiskLevel.MEDIUM)

        if len(history) >= cfg.deviation_min_history:
            average = sum((tx.amount for tx in history), Decimal(0)) / len(history)
            if amount > average * cfg.deviation_multiplier:
                flags.append(
                    "Transaction amount significantly higher than average "
                    f"({_fmt_cents(average)})"
                )
                risk = risk.raise_to(RiskLevel.HIGH)

        result = FraudCheckResult(passed=risk != RiskLevel.HIGH, risk_level=risk, flags=flags)
        if flags:
            logger.info(
                "Fraud rules triggered",
                wallet=wallet,
                risk_level=risk.value,
                passed=result.passed,
                flag_count=len(flags),
            )
        return result

    def _prune(self, times: list[float], now: float) -> list[float]:
        return [t for t in times if now - t < self.config.rapid_window_seconds]

    async def prune_stale_history(self) -> int:
        """Drop wallets with no submissions left in the window. Returns how many."""
        now = self._clock()
        dropped = 0
        for wallet in list(self._recent):
            async with self._wallet_locks.hold(wallet):
                window = self._prune(self._recent.get(wallet, []), now)
                if window:
                    self._recent[wallet] = window
                else:
                    self._recent.pop(wallet, None)
                    dropped += 1
        return dropped

    def recent_submissions(self, wallet_address: str) -> int:
        """Submissions currently remembered for a wallet (pruning not applied)."""
        return len(self._recent.get(wallet_address.lower(), []))
