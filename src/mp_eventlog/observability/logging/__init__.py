"""Observability – structured logging helpers."""
from mp_eventlog.observability.logging.factory import JsonLoggerFactory
from mp_eventlog.observability.logging.processors import bind_consumer_context, get_logger

__all__ = ["JsonLoggerFactory", "bind_consumer_context", "get_logger"]
