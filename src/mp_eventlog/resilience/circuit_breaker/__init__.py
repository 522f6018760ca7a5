"""Resilience – Circuit Breaker pattern."""
from mp_eventlog.resilience.circuit_breaker.breaker import (
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitBreakerState,
    CircuitOpenError,
)

__all__ = ["CircuitBreaker", "CircuitBreakerPolicy", "CircuitBreakerState", "CircuitOpenError"]
