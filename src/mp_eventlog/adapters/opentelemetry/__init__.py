"""OpenTelemetry adapter – metrics backend for the Metrics port."""
from mp_eventlog.adapters.opentelemetry.metrics import OtelMetrics

__all__ = ["OtelMetrics"]
