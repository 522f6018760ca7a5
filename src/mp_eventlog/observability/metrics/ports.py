"""Observability – metric ports and the instruments the event-log core publishes.

Components never hard-code instrument names; they unpack a spec::

    lag = metrics.gauge(*STREAM_LAG)
    lag.set(3, {"stream": "orders", "group": "order-processors"})
"""
from __future__ import annotations

import abc
from typing import Mapping, NamedTuple, TypeAlias

Labels: TypeAlias = Mapping[str, str] | None


class InstrumentSpec(NamedTuple):
    name: str
    description: str
    unit: str = ""


STREAM_ENTRIES = InstrumentSpec("stream.entries", "Entries handled, labelled by outcome")
STREAM_LAG = InstrumentSpec("stream.lag", "Pending entries per consumer group")
SNAPSHOT_COUNT = InstrumentSpec("snapshot.count", "Snapshots written")
SNAPSHOT_DURATION = InstrumentSpec("snapshot.duration", "Time to fold and write a snapshot", "ms")
SNAPSHOT_AGE = InstrumentSpec("snapshot.age.seconds", "Age of the live snapshot", "s")


class Counter(abc.ABC):
    @abc.abstractmethod
    def add(self, value: float = 1.0, labels: Labels = None) -> None: ...


class Histogram(abc.ABC):
    @abc.abstractmethod
    def record(self, value: float, labels: Labels = None) -> None: ...


class Gauge(abc.ABC):
    """Last value per label set, read by an exporter."""

    @abc.abstractmethod
    def set(self, value: float, labels: Labels = None) -> None: ...


class Metrics(abc.ABC):
    """Port: instrument factory. Asking twice for a name returns the same instrument."""

    @abc.abstractmethod
    def counter(self, name: str, description: str = "", unit: str = "") -> Counter: ...

    @abc.abstractmethod
    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram: ...

    @abc.abstractmethod
    def gauge(self, name: str, description: str = "", unit: str = "") -> Gauge: ...


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
]
