"""Resilience – build a retry policy from configuration values."""
from __future__ import annotations

import tenacity

from mp_eventlog.resilience.retry.backoff import ExponentialBackoff, FullJitter
from mp_eventlog.resilience.retry.policy import AsyncRetryPolicy, RetryPolicy
from mp_eventlog.resilience.retry.tenacity_adapter import TenacityRetryPolicy

RETRY_BACKENDS = ("native", "tenacity")


def build_retry_policy(
    backend: str = "native",
    *,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
) -> AsyncRetryPolicy:
    """Return a retry policy for store calls.

    ``"native"`` uses :class:`RetryPolicy` with exponential backoff and full
    jitter; ``"tenacity"`` uses :class:`TenacityRetryPolicy` with the
    equivalent ``wait_random_exponential``.
    """
    if backend == "native":
        return RetryPolicy(
            max_attempts=max_attempts,
            backoff=ExponentialBackoff(base_delay=base_delay, max_delay=max_delay),
            jitter=FullJitter(),
        )
    if backend == "tenacity":
        return TenacityRetryPolicy(
            max_attempts=max_attempts,
            wait=tenacity.wait_random_exponential(multiplier=base_delay, max=max_delay),
        )
    raise ValueError(f"Unknown retry backend {backend!r}; expected one of {RETRY_BACKENDS}")


__all__ = ["RETRY_BACKENDS", "build_retry_policy"]
