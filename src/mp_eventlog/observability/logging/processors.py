"""Observability – get_logger helper and stream-context binding."""
from __future__ import annotations

from typing import Any

import structlog


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def bind_consumer_context(stream_key: str, group_name: str, member_name: str) -> None:
    """Attach the consumer identity to every log line of the current context."""
    structlog.contextvars.bind_contextvars(
        stream=stream_key,
        group=group_name,
        member=member_name,
    )


__all__ = ["bind_consumer_context", "get_logger"]
