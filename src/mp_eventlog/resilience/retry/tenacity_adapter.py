"""Resilience – TenacityRetryPolicy adapter.

Same ``execute_async`` interface as
:class:`~mp_eventlog.resilience.retry.policy.RetryPolicy`, backed by ``tenacity``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

import tenacity

from mp_eventlog.resilience.retry.policy import is_retryable

T = TypeVar("T")
logger = logging.getLogger(__name__)


class TenacityRetryPolicy:
    """Retry policy backed by :class:`tenacity.AsyncRetrying`.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    wait:
        A ``tenacity`` wait strategy. Defaults to
        ``wait_random_exponential(multiplier=0.1, max=5)``.
    retry:
        A ``tenacity`` retry predicate. Defaults to retrying errors whose
        ``retryable`` flag is set, as :class:`RetryPolicy` does.
    kwargs:
        Forwarded to :class:`tenacity.AsyncRetrying`.

    Example
    -------
    ::

        policy = TenacityRetryPolicy(max_attempts=5, wait=tenacity.wait_fixed(0.2))
        entry_id = await policy.execute_async(lambda: log.append(stream, fields))
    """

    def __init__(
        self,
        max_attempts: int = 3,
        wait: Any = None,
        retry: Any = None,
        **kwargs: Any,
    ) -> None:
        self.max_attempts = max_attempts
        self._wait = wait or tenacity.wait_random_exponential(multiplier=0.1, max=5)
        self._retry = retry or tenacity.retry_if_exception(is_retryable)
        self._extra_kwargs = kwargs

    def _build_async_retrying(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=True,
            before_sleep=tenacity.before_sleep_log(logger, logging.DEBUG),
            **self._extra_kwargs,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        async for attempt in self._build_async_retrying():
            with attempt:
                result = await func()
        return result  # type: ignore[return-value]


__all__ = ["TenacityRetryPolicy"]
