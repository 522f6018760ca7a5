"""Application event log – Snapshot and SnapshotManager.

Snapshots are compacted by **incremental fold**: the stored snapshot is loaded
and only the entries strictly after its ``last_event_id`` are folded into it.
:meth:`SnapshotManager.rebuild` folds the whole history from empty state and
must yield the same materialized state.

Replay idempotency uses a :class:`DedupGuard` namespaced
``<stream_key>:applied:`` and keyed by the envelope's ``dedup_id``, with the
log id as owner.  The first log occurrence of a logical event owns the marker;
re-folding that same entry is allowed, later copies are skipped.
"""
from __future__ import annotations

import copy
import dataclasses
import json
import time
from datetime import datetime
from typing import Any, Callable, TypeAlias

from mp_eventlog.application.eventlog.dedup import DedupGuard
from mp_eventlog.application.eventlog.store import EventLogStore
from mp_eventlog.kernel.errors import (
    DedupUnavailable,
    SerializationError,
    SnapshotFailed,
    StoreUnavailableError,
)
from mp_eventlog.kernel.messaging import EventEnvelope, KeyValueStore
from mp_eventlog.kernel.time import Clock, SystemClock
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.observability.metrics import (
    SNAPSHOT_AGE,
    SNAPSHOT_COUNT,
    SNAPSHOT_DURATION,
    Metrics,
    NoopMetrics,
)
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["Reducer", "Snapshot", "SnapshotManager"]

logger = get_logger(__name__)

MaterializedState: TypeAlias = dict[str, dict[str, Any]]
# applies one envelope to the working state in place
Reducer: TypeAlias = Callable[[MaterializedState, EventEnvelope], None]


@dataclasses.dataclass(frozen=True)
class Snapshot:
    """Folded state of one aggregate log. One live snapshot per aggregate key."""

    aggregate_key: str
    materialized_state: dict[str, dict[str, Any]]
    as_of_event_count: int
    taken_at: datetime
    last_event_id: str | None = None

    @classmethod
    def empty(cls, aggregate_key: str, taken_at: datetime) -> "Snapshot":
        return cls(aggregate_key=aggregate_key, materialized_state={}, as_of_event_count=0, taken_at=taken_at)

    @property
    def is_empty(self) -> bool:
        return self.as_of_event_count == 0

    def to_bytes(self) -> bytes:
        return json.dumps(
            {
                "aggregate_key": self.aggregate_key,
                "materialized_state": self.materialized_state,
                "as_of_event_count": self.as_of_event_count,
                "taken_at": self.taken_at.isoformat(),
                "last_event_id": self.last_event_id,
            },
            sort_keys=True,
        ).encode()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Snapshot":
        try:
            data = json.loads(raw)
            return cls(
                aggregate_key=data["aggregate_key"],
                materialized_state=data["materialized_state"],
                as_of_event_count=int(data["as_of_event_count"]),
                taken_at=datetime.fromisoformat(data["taken_at"]),
                last_event_id=data.get("last_event_id"),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError("Malformed snapshot", payload_type="Snapshot", cause=exc) from exc


class SnapshotManager:
    """Materializes aggregate state and compacts it on a counting threshold.

    A snapshot is taken when ``length(stream) - snapshot.as_of_event_count``
    reaches *threshold*.  The stored snapshot under ``snapshot:<stream_key>``
    is overwritten whole, never merged.
    """

    def __init__(
        self,
        events: EventLogStore,
        store: KeyValueStore,
        reducer: Reducer,
        *,
        threshold: int = 50,
        applied_ttl_seconds: int = 86400,
        metrics: Metrics | None = None,
        policy: StoreCallPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self._events = events
        self._store = store
        self._reducer = reducer
        self._threshold = threshold
        self._applied_ttl = applied_ttl_seconds
        self._policy = policy or StoreCallPolicy()
        self._clock = clock or SystemClock()
        self._guards: dict[str, DedupGuard] = {}
        m = metrics or NoopMetrics()
        self._count = m.counter(*SNAPSHOT_COUNT)
        self._duration = m.histogram(*SNAPSHOT_DURATION)
        self._age = m.gauge(*SNAPSHOT_AGE)

    @property
    def threshold(self) -> int:
        return self._threshold

    @staticmethod
    def snapshot_key(stream_key: str) -> str:
        return f"snapshot:{stream_key}"

    def applied_guard(self, stream_key: str) -> DedupGuard:
        guard = self._guards.get(stream_key)
        if guard is None:
            guard = DedupGuard(
                self._store,
                prefix=f"{stream_key}:applied:",
                default_ttl_seconds=self._applied_ttl,
                policy=self._policy,
                clock=self._clock,
            )
            self._guards[stream_key] = guard
        return guard

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def load(self, stream_key: str) -> Snapshot:
        """Return the stored snapshot, or an empty one if none was taken yet."""
        try:
            raw = await self._policy.run(lambda: self._store.get(self.snapshot_key(stream_key)))
            if raw is None:
                return Snapshot.empty(stream_key, self._clock.now())
            return Snapshot.from_bytes(raw)
        except (StoreUnavailableError, SerializationError) as exc:
            raise SnapshotFailed(
                f"Could not load snapshot of '{stream_key}'", stream_key=stream_key, cause=exc
            ) from exc

    async def fold(self, snapshot: Snapshot, envelopes: list[EventEnvelope]) -> Snapshot:
        """Fold *envelopes* into a copy of *snapshot*; the input is not modified."""
        guard = self.applied_guard(snapshot.aggregate_key)
        state = copy.deepcopy(snapshot.materialized_state)
        count = snapshot.as_of_event_count
        last_id = snapshot.last_event_id
        for envelope in envelopes:
            claim = await guard.mark_if_absent(envelope.dedup_id, owner=envelope.id, read_marker=True)
            if claim.owned_by(envelope.id):
                self._reducer(state, envelope)
            else:
                logger.info(
                    "snapshot.duplicate_skipped",
                    stream=snapshot.aggregate_key,
                    entry_id=envelope.id,
                    dedup_id=envelope.dedup_id,
                )
            count += 1
            last_id = envelope.id
        return Snapshot(
            aggregate_key=snapshot.aggregate_key,
            materialized_state=state,
            as_of_event_count=count,
            taken_at=self._clock.now(),
            last_event_id=last_id,
        )

    async def _tail(self, snapshot: Snapshot) -> list[EventEnvelope]:
        stream_key = snapshot.aggregate_key
        if snapshot.last_event_id is not None:
            return [e async for e in self._events.iter_range(stream_key, after_id=snapshot.last_event_id)]
        # no cursor: skip by count
        everything = [e async for e in self._events.iter_range(stream_key)]
        return everything[snapshot.as_of_event_count:]

    async def reconstruct(self, stream_key: str) -> Snapshot:
        """Stored snapshot plus its tail, without persisting the result."""
        snapshot = await self.load(stream_key)
        return await self.fold(snapshot, await self._tail(snapshot))

    async def rebuild(self, stream_key: str) -> Snapshot:
        """Full replay of the history from empty state, without persisting."""
        empty = Snapshot.empty(stream_key, self._clock.now())
        return await self.fold(empty, await self._tail(empty))

    # ------------------------------------------------------------------
    # Compaction
    # ------------------------------------------------------------------

    async def save(self, snapshot: Snapshot) -> None:
        key = self.snapshot_key(snapshot.aggregate_key)
        try:
            await self._policy.run(lambda: self._store.set(key, snapshot.to_bytes()))
        except StoreUnavailableError as exc:
            raise SnapshotFailed(
                f"Could not write snapshot of '{snapshot.aggregate_key}'",
                stream_key=snapshot.aggregate_key,
                cause=exc,
            ) from exc

    async def snapshot(self, stream_key: str) -> Snapshot:
        """Fold the tail into the stored snapshot and overwrite it now."""
        started = time.perf_counter()
        current = await self.load(stream_key)
        try:
            folded = await self.fold(current, await self._tail(current))
        except (StoreUnavailableError, DedupUnavailable) as exc:
            raise SnapshotFailed(
                f"Could not fold snapshot of '{stream_key}'", stream_key=stream_key, cause=exc
            ) from exc
        await self.save(folded)
        elapsed_ms = (time.perf_counter() - started) * 1000
        labels = {"aggregate": stream_key}
        self._count.add(1, labels)
        self._duration.record(elapsed_ms, labels)
        self._age.set(0.0, labels)
        logger.info(
            "snapshot.taken",
            stream=stream_key,
            as_of_event_count=folded.as_of_event_count,
            folded=folded.as_of_event_count - current.as_of_event_count,
            duration_ms=round(elapsed_ms, 3),
        )
        return folded

    async def maybe_snapshot(self, stream_key: str) -> Snapshot | None:
        """Snapshot when at least *threshold* entries were appended since the last one."""
        current = await self.load(stream_key)
        try:
            total = await self._events.length(stream_key)
        except StoreUnavailableError as exc:
            raise SnapshotFailed(
                f"Could not measure '{stream_key}'", stream_key=stream_key, cause=exc
            ) from exc
        if total - current.as_of_event_count < self._threshold:
            if not current.is_empty:
                age = (self._clock.now() - current.taken_at).total_seconds()
                self._age.set(max(age, 0.0), {"aggregate": stream_key})
            return None
        return await self.snapshot(stream_key)
