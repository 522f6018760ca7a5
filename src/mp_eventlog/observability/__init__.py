"""Observability – structured logging and metric ports."""
from mp_eventlog.observability.logging import JsonLoggerFactory, bind_consumer_context, get_logger
from mp_eventlog.observability.metrics import (
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
    NoopMetrics,
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
    "JsonLoggerFactory",
    "Labels",
    "Metrics",
    "NoopMetrics",
    "bind_consumer_context",
    "get_logger",
]
