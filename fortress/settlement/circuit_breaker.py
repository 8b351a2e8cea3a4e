"""Async circuit breaker guarding calls to the external settlement service."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreakerState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(RuntimeError):
    pass


class CircuitBreaker:
    """Fails fast after repeated failures.

    After the cool-down a single trial call is let through (HALF_OPEN); other
    callers keep failing fast until that call settles the state.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout_seconds: int = 60,
        expected_exception: type[Exception] = Exception,
    ):
        self._failure_threshold = failure_threshold
        self._timeout_seconds = timeout_seconds
        self._expected_exception = expected_exception
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time: datetime | None = None
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    def _should_attempt_reset(self) -> bool:
        if self._last_failure_time is None:
            return True
        elapsed = (datetime.now(UTC) - self._last_failure_time).total_seconds()
        return elapsed >= self._timeout_seconds

    def _record_failure(self) -> None:
        self._trial_in_flight = False
        self._failure_count += 1
        self._last_failure_time = datetime.now(UTC)
        if self._failure_count >= self._failure_threshold:
            self._state = CircuitBreakerState.OPEN
            logger.error(
                f"Circuit breaker OPEN after {self._failure_count} consecutive failures. "
                f"Will allow retry after {self._timeout_seconds} seconds."
            )
        else:
            logger.warning(
                f"Circuit breaker failure count: {self._failure_count}/{self._failure_threshold}"
            )

    def _record_success(self) -> None:
        self._trial_in_flight = False
        if self._state == CircuitBreakerState.HALF_OPEN:
            logger.info("Circuit breaker CLOSED - service has recovered")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await func(*args, **kwargs) with circuit breaker protection."""
        async with self._lock:
            if self._state == CircuitBreakerState.OPEN and self._should_attempt_reset():
                self._state = CircuitBreakerState.HALF_OPEN
                logger.info("Circuit breaker HALF_OPEN - attempting recovery")

            if self._state == CircuitBreakerState.OPEN:
                raise CircuitBreakerOpenError("Circuit breaker is OPEN - service unavailable")

            if self._state == CircuitBreakerState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitBreakerOpenError(
                        "Circuit breaker is HALF_OPEN - recovery attempt in progress"
                    )
                self._trial_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except self._expected_exception:
            async with self._lock:
                self._record_failure()
            raise
        except BaseException:
            # Uncounted errors and cancellation release the trial slot
            self._trial_in_flight = False
            raise

        async with self._lock:
            self._record_success()
        return result

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_open(self) -> bool:
        return self._state == CircuitBreakerState.OPEN

    def reset(self) -> None:
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None
        self._trial_in_flight = False
