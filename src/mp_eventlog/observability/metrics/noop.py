"""Observability – NoopMetrics, the default when no backend is wired in."""
from __future__ import annotations

from mp_eventlog.observability.metrics.ports import Counter, Gauge, Histogram, Labels, Metrics


class _Discard(Counter, Histogram, Gauge):
    def add(self, value: float = 1.0, labels: Labels = None) -> None:
        pass

    def record(self, value: float, labels: Labels = None) -> None:
        pass

    def set(self, value: float, labels: Labels = None) -> None:
        pass


_DISCARD = _Discard()


class NoopMetrics(Metrics):
    def counter(self, name: str, description: str = "", unit: str = "") -> Counter:
        return _DISCARD

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram:
        return _DISCARD

    def gauge(self, name: str, description: str = "", unit: str = "") -> Gauge:
        return _DISCARD


__all__ = ["NoopMetrics"]
