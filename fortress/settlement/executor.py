"""Settlement executors.

A settlement executor finalizes an approved transfer and reports a
reference plus a confirmed/failed outcome. It is injected into the
transaction service so tests can substitute deterministic fakes.
"""

import asyncio
import logging
import random
import secrets
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from fortress.core.config import SettlementConfig, SettlementMode
from fortress.settlement.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class SettlementStatus(str, Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"
    # Reported by the caller, never by an executor
    TIMEOUT = "timeout"
    ERROR = "error"


class SettlementResult(BaseModel):
    reference: str | None = None
    status: SettlementStatus
    block_number: int | None = None
    gas_used: int | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def confirmed(self) -> bool:
        return self.status == SettlementStatus.CONFIRMED


@runtime_checkable
class SettlementExecutor(Protocol):
    async def execute(
        self,
        sender_wallet: str,
        recipient_wallet: str,
        amount: Decimal,
    ) -> SettlementResult: ...


def generate_settlement_reference() -> str:
    """0x-prefixed 32-byte hex reference, shaped like an on-chain tx hash."""
    return "0x" + secrets.token_hex(32)


class SimulatedSettlementExecutor:
    """Stand-in for the on-chain executor: random latency and occasional failure."""

    def __init__(
        self,
        min_latency_seconds: float = 0.5,
        max_latency_seconds: float = 1.5,
        failure_rate: float = 0.05,
        rng: random.Random | None = None,
    ):
        self.min_latency_seconds = min_latency_seconds
        self.max_latency_seconds = max(max_latency_seconds, min_latency_seconds)
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()

    async def execute(
        self,
        sender_wallet: str,
        recipient_wallet: str,
        amount: Decimal,
    ) -> SettlementResult:
        await asyncio.sleep(self._rng.uniform(self.min_latency_seconds, self.max_latency_seconds))
        failed = self._rng.random() < self.failure_rate
        result = SettlementResult(
            reference=generate_settlement_reference(),
            status=SettlementStatus.FAILED if failed else SettlementStatus.CONFIRMED,
            block_number=self._rng.randint(19_000_000, 19_100_000),
            gas_used=self._rng.randint(21_000, 71_000),
        )
        logger.info(
            "Simulated settlement executed",
            extra={"reference": result.reference, "status": result.status.value},
        )
        return result


class HttpSettlementExecutor:
    """Posts settlements to an external settlement service.

    Expected response body: {"reference": str, "status": "confirmed"|"failed",
    "block_number": int?, "gas_used": int?}.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers)
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            expected_exception=httpx.HTTPError
        )

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        response = await self._client.post("/settlements", json=payload)
        response.raise_for_status()
        return response

    async def execute(
        self,
        sender_wallet: str,
        recipient_wallet: str,
        amount: Decimal,
    ) -> SettlementResult:
        payload = {
            "from": sender_wallet,
            "to": recipient_wallet,
            "amount": str(amount),
        }
        response = await self._circuit_breaker.call(self._post, payload)
        return SettlementResult.model_validate(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()


def build_settlement_executor(config: SettlementConfig) -> SettlementExecutor:
    """Create the executor selected by SETTLEMENT_MODE."""
    if config.mode == SettlementMode.HTTP:
        return HttpSettlementExecutor(
            base_url=config.base_url,
            api_key=config.api_key.get_secret_value(),
            circuit_breaker=CircuitBreaker(
                failure_threshold=config.circuit_failure_threshold,
                timeout_seconds=config.circuit_reset_seconds,
                expected_exception=httpx.HTTPError,
            ),
        )
    return SimulatedSettlementExecutor(
        min_latency_seconds=config.simulated_min_latency_seconds,
        max_latency_seconds=config.simulated_max_latency_seconds,
        failure_rate=config.simulated_failure_rate,
    )
