"""Resilience – retry with configurable backoff and jitter strategies."""
from mp_eventlog.resilience.retry.backoff import (
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    FullJitter,
    JitterStrategy,
    NoJitter,
)
from mp_eventlog.resilience.retry.factory import RETRY_BACKENDS, build_retry_policy
from mp_eventlog.resilience.retry.policy import AsyncRetryPolicy, RetryPolicy, is_retryable, retrying
from mp_eventlog.resilience.retry.tenacity_adapter import TenacityRetryPolicy

__all__ = [
    "RETRY_BACKENDS", "AsyncRetryPolicy", "BackoffStrategy", "ConstantBackoff",
    "ExponentialBackoff", "FullJitter", "JitterStrategy", "NoJitter",
    "RetryPolicy", "TenacityRetryPolicy", "build_retry_policy", "is_retryable", "retrying",
]
