"""Application event log – EventLogStore."""
from __future__ import annotations

from typing import AsyncIterator

from mp_eventlog.kernel.errors import AppendFailed, StoreUnavailableError
from mp_eventlog.kernel.messaging import EventEnvelope, OrderedLog, decode_entry, encode_fields
from mp_eventlog.kernel.time import Clock, SystemClock
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["EventLogStore"]

logger = get_logger(__name__)


class EventLogStore:
    """Append/read primitive over an ordered log keyed by stream name.

    Reads go through *policy* (retry and optional circuit breaker). An append
    is sent once: when it fails, :class:`~mp_eventlog.kernel.errors.AppendFailed`
    is raised and the caller decides whether to send it again. After a timeout
    the log may already hold the entry, so a resend can duplicate it.
    """

    def __init__(
        self,
        log: OrderedLog,
        *,
        policy: StoreCallPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._log = log
        self._policy = policy or StoreCallPolicy()
        self._clock = clock or SystemClock()

    async def append(
        self,
        stream_key: str,
        payload: bytes,
        type: str,  # noqa: A002
        *,
        schema_version: int = 1,
        event_key: str | None = None,
    ) -> str:
        """Append one event and return the id the log assigned to it."""
        fields = encode_fields(
            type,
            payload,
            produced_at=self._clock.now(),
            schema_version=schema_version,
            event_key=event_key,
        )
        try:
            entry_id = await self._policy.run_once(lambda: self._log.append(stream_key, fields))
        except StoreUnavailableError as exc:
            logger.warning("eventlog.append_failed", stream=stream_key, type=type, **exc.log_fields())
            raise AppendFailed(
                f"Append to '{stream_key}' failed",
                stream_key=stream_key,
                cause=exc,
            ) from exc
        logger.debug("eventlog.appended", stream=stream_key, entry_id=entry_id, type=type)
        return entry_id

    async def read_range(
        self,
        stream_key: str,
        from_id: str = "-",
        to_id: str = "+",
        *,
        count: int | None = None,
    ) -> list[EventEnvelope]:
        """Return envelopes with ids between *from_id* and *to_id* in log order.

        A ``"("`` prefix on a bound makes it exclusive, so a read can resume
        right after the last id seen.
        """
        entries = await self._policy.run(
            lambda: self._log.range(stream_key, from_id, to_id, count)
        )
        return [decode_entry(stream_key, entry) for entry in entries]

    async def iter_range(
        self,
        stream_key: str,
        after_id: str | None = None,
        batch_size: int = 100,
    ) -> AsyncIterator[EventEnvelope]:
        """Yield every envelope after *after_id* (exclusive), paging by *batch_size*."""
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        start = f"({after_id}" if after_id else "-"
        while True:
            batch = await self.read_range(stream_key, start, "+", count=batch_size)
            for envelope in batch:
                yield envelope
            if len(batch) < batch_size:
                return
            start = f"({batch[-1].id}"

    async def length(self, stream_key: str) -> int:
        return await self._policy.run(lambda: self._log.length(stream_key))
