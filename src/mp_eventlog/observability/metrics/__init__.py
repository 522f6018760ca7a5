"""Observability – metric ports, the instrument catalogue and the no-op backend."""
from mp_eventlog.observability.metrics.noop import NoopMetrics
from mp_eventlog.observability.metrics.ports import (
    SNAPSHOT_AGE,
    SNAPSHOT_COUNT,
    SNAPSHOT_DURATION,
    STREAM_ENTRIES,
    STREAM_LAG,
    Counter,
    Gauge,
    Histogram,
    InstrumentSpec,
    Labels,
    Metrics,
)

__all__ = [
    "SNAPSHOT_AGE",
    "SNAPSHOT_COUNT",
    "SNAPSHOT_DURATION",
    "STREAM_ENTRIES",
    "STREAM_LAG",
    "Counter",
    "Gauge",
    "Histogram",
    "InstrumentSpec",
    "Labels",
    "Metrics",
    "NoopMetrics",
]
