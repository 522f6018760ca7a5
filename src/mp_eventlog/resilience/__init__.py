"""Resilience – retry, circuit breaker and timeouts for external-store calls."""

from mp_eventlog.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitBreakerState,
    CircuitOpenError,
)
from mp_eventlog.resilience.retry import (
    AsyncRetryPolicy,
    BackoffStrategy,
    JitterStrategy,
    RetryPolicy,
    TenacityRetryPolicy,
    build_retry_policy,
    retrying,
)
from mp_eventlog.resilience.store_call import StoreCallPolicy, no_retry
from mp_eventlog.resilience.timeouts import TimeoutPolicy

__all__ = [
    "AsyncRetryPolicy",
    "BackoffStrategy",
    "CircuitBreaker",
    "CircuitBreakerPolicy",
    "CircuitBreakerState",
    "CircuitOpenError",
    "JitterStrategy",
    "RetryPolicy",
    "StoreCallPolicy",
    "TenacityRetryPolicy",
    "TimeoutPolicy",
    "build_retry_policy",
    "no_retry",
    "retrying",
]
