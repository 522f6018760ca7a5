"""Resilience – RetryPolicy and the ``retrying`` decorator.

Every call against the external log or key/value store goes through one of
these. By default an exception is retried when it carries ``retryable = True``
(see :class:`~mp_eventlog.kernel.errors.BaseError`); pass
``retryable_exceptions`` to pin an explicit list instead::

    policy = RetryPolicy(max_attempts=3)
    entry_id = await policy.execute_async(lambda: log.append(stream, fields))

    @retrying(policy)
    async def load(key: str) -> bytes | None: ...
"""
from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from mp_eventlog.resilience.retry.backoff import (
    BackoffStrategy,
    ExponentialBackoff,
    FullJitter,
    JitterStrategy,
)

T = TypeVar("T")
logger = logging.getLogger(__name__)


def is_retryable(exc: BaseException) -> bool:
    return getattr(exc, "retryable", False) is True


class AsyncRetryPolicy(Protocol):
    """Anything that can run an async callable with retries."""

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T: ...


class RetryPolicy:
    """Native asyncio retry loop: backoff, then jitter, then ``sleep``."""

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: BackoffStrategy | None = None,
        jitter: JitterStrategy | None = None,
        retryable_exceptions: tuple[type[BaseException], ...] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.backoff = backoff or ExponentialBackoff()
        self.jitter = jitter or FullJitter()
        self.retryable_exceptions = retryable_exceptions
        self._sleep = sleep

    def _should_retry(self, exc: BaseException) -> bool:
        if self.retryable_exceptions is None:
            return is_retryable(exc)
        return isinstance(exc, self.retryable_exceptions)

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute *func* with retry; the last exception propagates unchanged."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func()
            except Exception as exc:
                if not self._should_retry(exc) or attempt == self.max_attempts:
                    raise
                delay = self.jitter.apply(self.backoff.compute(attempt))
                logger.debug("retry attempt=%d delay=%.3fs exc=%r", attempt, delay, exc)
                await self._sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover


def retrying(policy: AsyncRetryPolicy) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate an async function so every call runs under *policy*."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await policy.execute_async(lambda: func(*args, **kwargs))

        return wrapper

    return decorator


__all__ = ["AsyncRetryPolicy", "RetryPolicy", "is_retryable", "retrying"]
