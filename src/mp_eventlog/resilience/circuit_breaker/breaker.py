"""Resilience – CircuitBreaker guarding one backing store.

Only outages trip the circuit: by default :class:`StoreUnavailableError` and
:class:`~mp_eventlog.kernel.errors.TimeoutError`. Handler bugs and decode
errors pass through without touching the counters.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from mp_eventlog.kernel.errors import StoreUnavailableError
from mp_eventlog.kernel.errors import TimeoutError as StoreTimeoutError

T = TypeVar("T")
logger = logging.getLogger(__name__)


class CircuitBreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclasses.dataclass(frozen=True)
class CircuitBreakerPolicy:
    failure_threshold: int = 5
    # consecutive probe successes needed in HALF_OPEN
    success_threshold: int = 2
    cooldown_seconds: float = 30.0
    trips_on: tuple[type[BaseException], ...] = (StoreUnavailableError, StoreTimeoutError)


class CircuitOpenError(StoreUnavailableError):
    """Raised instead of calling the store while the circuit is OPEN."""

    default_code = "circuit_open"

    def __init__(self, circuit_name: str, retry_after: float) -> None:
        super().__init__(
            circuit_name,
            f"Circuit '{circuit_name}' is open, next probe in {retry_after:.1f}s",
        )
        self.detail["retry_after"] = round(retry_after, 3)
        self.circuit_name = circuit_name
        self.retry_after = retry_after


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        policy: CircuitBreakerPolicy | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.policy = policy or CircuitBreakerPolicy()
        self._monotonic = monotonic
        self._state = CircuitBreakerState.CLOSED
        self._streak = 0
        self._opened_at = 0.0
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            self._admit()
        try:
            result = await func()
        except self.policy.trips_on:
            async with self._lock:
                self._record(ok=False)
            raise
        async with self._lock:
            self._record(ok=True)
        return result

    def _admit(self) -> None:
        if self._state is not CircuitBreakerState.OPEN:
            return
        remaining = self.policy.cooldown_seconds - (self._monotonic() - self._opened_at)
        if remaining > 0:
            raise CircuitOpenError(self.name, remaining)
        self._move(CircuitBreakerState.HALF_OPEN)

    def _record(self, *, ok: bool) -> None:
        # _streak counts failures while CLOSED and successes while HALF_OPEN
        if self._state is CircuitBreakerState.HALF_OPEN:
            if not ok:
                self._move(CircuitBreakerState.OPEN)
                return
            self._streak += 1
            if self._streak >= self.policy.success_threshold:
                self._move(CircuitBreakerState.CLOSED)
            return
        if ok:
            self._streak = 0
            return
        self._streak += 1
        logger.warning(
            "circuit_breaker.failure name=%s streak=%d threshold=%d",
            self.name, self._streak, self.policy.failure_threshold,
        )
        if self._streak >= self.policy.failure_threshold:
            self._move(CircuitBreakerState.OPEN)

    def _move(self, state: CircuitBreakerState) -> None:
        level = logging.ERROR if state is CircuitBreakerState.OPEN else logging.INFO
        logger.log(level, "circuit_breaker.%s name=%s", state.value.lower(), self.name)
        self._state = state
        self._streak = 0
        if state is CircuitBreakerState.OPEN:
            self._opened_at = self._monotonic()


__all__ = ["CircuitBreaker", "CircuitBreakerPolicy", "CircuitBreakerState", "CircuitOpenError"]
