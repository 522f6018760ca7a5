"""Resilience – StoreCallPolicy: retry (and optionally a circuit breaker) around one store call."""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from mp_eventlog.resilience.circuit_breaker import CircuitBreaker
from mp_eventlog.resilience.retry import AsyncRetryPolicy, RetryPolicy

T = TypeVar("T")


class StoreCallPolicy:
    """Explicit wrapper applied by every component to its external-store calls.

    The breaker sits inside the retry loop, so each attempt is counted and an
    open circuit surfaces as a retryable ``CircuitOpenError``.

    :meth:`run` is for idempotent commands (reads, SET NX, ACK, DEL).
    :meth:`run_once` is for log appends: a timed-out XADD may still have been
    recorded, and sending it again would add a second entry under a new id.
    """

    def __init__(
        self,
        retry: AsyncRetryPolicy | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.retry = retry or RetryPolicy()
        self.breaker = breaker

    async def run(self, func: Callable[[], Awaitable[T]]) -> T:
        return await self.retry.execute_async(lambda: self.run_once(func))

    async def run_once(self, func: Callable[[], Awaitable[T]]) -> T:
        if self.breaker is None:
            return await func()
        return await self.breaker.call(func)


def no_retry() -> StoreCallPolicy:
    """Single attempt and no breaker, for tests."""
    return StoreCallPolicy(retry=RetryPolicy(max_attempts=1))


__all__ = ["StoreCallPolicy", "no_retry"]
