"""Application event sourcing – AggregateEventSourcingService."""
from __future__ import annotations

from typing import Any

from mp_eventlog.application.eventlog import DedupGuard, EventLogStore, Snapshot, SnapshotManager
from mp_eventlog.application.event_sourcing.codec import DomainEvent, EventCodec
from mp_eventlog.kernel.errors import AppendFailed, DedupUnavailable, SnapshotFailed
from mp_eventlog.observability.logging import get_logger

__all__ = ["AggregateEventSourcingService"]

logger = get_logger(__name__)


class AggregateEventSourcingService:
    """Append + periodic snapshot + replay over one aggregate log.

    ``record`` appends a typed event and then gives the snapshot manager a
    chance to compact.  A failed compaction is logged and retried on the next
    threshold crossing; it never fails the append.

    With a *recorded* guard, an event whose ``event_id`` was already recorded
    inside the guard's TTL is not appended a second time.
    """

    def __init__(
        self,
        store: EventLogStore,
        snapshots: SnapshotManager,
        codec: EventCodec,
        *,
        stream_key: str,
        recorded: DedupGuard | None = None,
    ) -> None:
        self._store = store
        self._snapshots = snapshots
        self._codec = codec
        self._recorded = recorded
        self.stream_key = stream_key

    async def record(self, event: DomainEvent) -> str | None:
        """Append *event*; ``None`` when it had already been recorded."""
        encoded = self._codec.encode(event)
        if self._recorded is not None:
            claim = await self._recorded.mark_if_absent(event.event_id)
            if not claim.applied:
                logger.info("sourcing.already_recorded", stream=self.stream_key, event_id=event.event_id)
                return None
        try:
            entry_id = await self._store.append(
                self.stream_key,
                encoded.payload,
                encoded.type,
                schema_version=encoded.schema_version,
                event_key=encoded.event_key,
            )
        except AppendFailed:
            if self._recorded is not None:
                await self._release(event.event_id)
            raise
        try:
            await self._snapshots.maybe_snapshot(self.stream_key)
        except SnapshotFailed as exc:
            logger.warning("sourcing.snapshot_failed", stream=self.stream_key, **exc.log_fields())
        return entry_id

    async def _release(self, event_id: str) -> None:
        assert self._recorded is not None
        try:
            await self._recorded.release(event_id)
        except DedupUnavailable as exc:
            logger.error("sourcing.release_failed", event_id=event_id, **exc.log_fields())

    async def reconstruct(self) -> dict[str, dict[str, Any]]:
        """Current state: stored snapshot plus the entries after it."""
        snapshot = await self._snapshots.reconstruct(self.stream_key)
        return snapshot.materialized_state

    async def rebuild(self) -> dict[str, dict[str, Any]]:
        """Current state from a full replay, ignoring the stored snapshot."""
        snapshot = await self._snapshots.rebuild(self.stream_key)
        return snapshot.materialized_state

    async def snapshot_now(self) -> Snapshot:
        return await self._snapshots.snapshot(self.stream_key)
