"""Kernel time – Clock port + implementations.

Log ids, dedup markers, snapshot ages and key expiry all read a ``Clock``;
handing every component the same ``FrozenClock`` makes all of them
deterministic under test.
"""
from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...
    def timestamp(self) -> float: ...
    def millis(self) -> int: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def timestamp(self) -> float:
        return time.time()

    def millis(self) -> int:
        return time.time_ns() // 1_000_000


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, fixed: datetime) -> None:
        if fixed.tzinfo is None:
            raise ValueError("FrozenClock needs a timezone-aware datetime")
        self._fixed = fixed

    def now(self) -> datetime:
        return self._fixed

    def timestamp(self) -> float:
        return self._fixed.timestamp()

    def millis(self) -> int:
        return int(self._fixed.timestamp() * 1000)

    def advance(self, **kwargs: int | float) -> None:
        """Move forward by ``timedelta(**kwargs)``."""
        self._fixed += timedelta(**kwargs)


__all__ = ["Clock", "FrozenClock", "SystemClock"]
