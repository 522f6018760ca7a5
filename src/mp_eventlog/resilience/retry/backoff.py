"""Resilience – delays between store-call attempts.

A retry delay is a backoff (how long after the *n*-th failure) passed through
a jitter (how much of it to actually wait), so a burst of consumers retrying
against a recovering Redis does not land on the same millisecond.
"""
from __future__ import annotations

import abc
import dataclasses
import random


class BackoffStrategy(abc.ABC):
    @abc.abstractmethod
    def compute(self, attempt: int) -> float:
        """Seconds to wait after the *attempt*-th failure (1-based)."""


@dataclasses.dataclass(frozen=True)
class ConstantBackoff(BackoffStrategy):
    delay: float = 1.0

    def compute(self, attempt: int) -> float:  # noqa: ARG002
        return self.delay


@dataclasses.dataclass(frozen=True)
class ExponentialBackoff(BackoffStrategy):
    """``base_delay * 2^(attempt - 1)``, capped at ``max_delay``."""

    base_delay: float = 0.1
    max_delay: float = 5.0

    def compute(self, attempt: int) -> float:
        return min(self.base_delay * 2 ** max(attempt - 1, 0), self.max_delay)


class JitterStrategy(abc.ABC):
    @abc.abstractmethod
    def apply(self, delay: float) -> float: ...


class NoJitter(JitterStrategy):
    def apply(self, delay: float) -> float:
        return delay


class FullJitter(JitterStrategy):
    """Uniform in ``[0, delay]``; pass *rng* for reproducible delays."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()  # noqa: S311

    def apply(self, delay: float) -> float:
        return self._rng.uniform(0, delay)


__all__ = [
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FullJitter",
    "JitterStrategy",
    "NoJitter",
]
