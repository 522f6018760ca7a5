"""Resilience – TimeoutPolicy."""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Awaitable, Callable, TypeVar

from mp_eventlog.kernel.errors import TimeoutError as AppTimeoutError

T = TypeVar("T")


@dataclasses.dataclass
class TimeoutPolicy:
    """Configuration for timeout enforcement."""

    timeout_seconds: float

    async def execute(self, func: Callable[[], Awaitable[T]], *, extra_seconds: float = 0.0) -> T:
        """Await *func* for at most ``timeout_seconds + extra_seconds``."""
        limit = self.timeout_seconds + extra_seconds
        try:
            return await asyncio.wait_for(func(), timeout=limit)
        except TimeoutError as exc:
            raise AppTimeoutError(limit) from exc


__all__ = ["TimeoutPolicy"]
