"""OpenTelemetry adapter – OtelMetrics over an ``opentelemetry.metrics.Meter``."""
from __future__ import annotations

import threading
from typing import Any, Callable, Iterable

from mp_eventlog.observability.metrics import Counter, Gauge, Histogram, Labels, Metrics


def _require_otel() -> None:
    try:
        import opentelemetry  # noqa: F401
    except ImportError as exc:
        raise ImportError("Install 'mp-eventlog[otel]' to use the OpenTelemetry adapter") from exc


def _attributes(labels: Labels) -> dict[str, str] | None:
    return dict(labels) if labels else None


class _OtelCounter(Counter):
    def __init__(self, instrument: Any) -> None:
        self._instrument = instrument

    def add(self, value: float = 1.0, labels: Labels = None) -> None:
        self._instrument.add(value, attributes=_attributes(labels))


class _OtelHistogram(Histogram):
    def __init__(self, instrument: Any) -> None:
        self._instrument = instrument

    def record(self, value: float, labels: Labels = None) -> None:
        self._instrument.record(value, attributes=_attributes(labels))


class _LastValueGauge(Gauge):
    """Holds the last value per label set until the reader's next collection."""

    def __init__(self) -> None:
        self._latest: dict[frozenset[tuple[str, str]], float] = {}
        self._lock = threading.Lock()

    def set(self, value: float, labels: Labels = None) -> None:
        with self._lock:
            self._latest[frozenset((labels or {}).items())] = value

    def collect(self, options: Any = None) -> Iterable[Any]:
        from opentelemetry.metrics import Observation

        with self._lock:
            latest = list(self._latest.items())
        return [Observation(value, attributes=dict(key)) for key, value in latest]


class OtelMetrics(Metrics):
    """Publishes the event-log instruments through OpenTelemetry.

    Instruments are cached per kind and name. Gauges become observable
    gauges whose callback reports :class:`_LastValueGauge` contents, so the
    lag and snapshot-age gauges keep one series per label set.
    """

    def __init__(self, meter_name: str = "mp_eventlog", meter: Any | None = None) -> None:
        if meter is None:
            _require_otel()
            from opentelemetry import metrics

            meter = metrics.get_meter(meter_name)
        self._meter = meter
        self._instruments: dict[tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def _cached(self, kind: str, name: str, build: Callable[[], Any]) -> Any:
        with self._lock:
            instrument = self._instruments.get((kind, name))
            if instrument is None:
                instrument = self._instruments[(kind, name)] = build()
            return instrument

    def counter(self, name: str, description: str = "", unit: str = "") -> Counter:
        return self._cached(
            "counter",
            name,
            lambda: _OtelCounter(self._meter.create_counter(name, unit=unit, description=description)),
        )

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram:
        return self._cached(
            "histogram",
            name,
            lambda: _OtelHistogram(self._meter.create_histogram(name, unit=unit, description=description)),
        )

    def gauge(self, name: str, description: str = "", unit: str = "") -> Gauge:
        def build() -> _LastValueGauge:
            gauge = _LastValueGauge()
            self._meter.create_observable_gauge(
                name, callbacks=[gauge.collect], unit=unit, description=description
            )
            return gauge

        return self._cached("gauge", name, build)


__all__ = ["OtelMetrics"]
