"""Application event log – append/read, dedup, consumer groups, dead letters, snapshots, lag."""
from mp_eventlog.application.eventlog.dead_letter import DeadLetterRouter
from mp_eventlog.application.eventlog.dedup import DedupGuard
from mp_eventlog.application.eventlog.lag import LagMonitor
from mp_eventlog.application.eventlog.processor import CycleReport, EventHandler, StreamProcessor
from mp_eventlog.application.eventlog.reader import ConsumerGroupReader, ReaderState
from mp_eventlog.application.eventlog.snapshot import Reducer, Snapshot, SnapshotManager
from mp_eventlog.application.eventlog.store import EventLogStore

__all__ = [
    "ConsumerGroupReader",
    "CycleReport",
    "DeadLetterRouter",
    "DedupGuard",
    "EventHandler",
    "EventLogStore",
    "LagMonitor",
    "ReaderState",
    "Reducer",
    "Snapshot",
    "SnapshotManager",
    "StreamProcessor",
]
