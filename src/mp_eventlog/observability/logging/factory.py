"""Observability – JsonLoggerFactory: one root handler for structlog and stdlib records."""
from __future__ import annotations

import logging
from typing import IO, Any

import structlog


def _shared_processors() -> list[Any]:
    # applied to structlog events and, via foreign_pre_chain, to stdlib records
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


class JsonLoggerFactory:
    """Configure structlog and the stdlib root logger together.

    The breaker and retry modules log through stdlib ``logging``; the event-log
    components log through structlog. Both end up as one JSON object per line
    (or coloured console output with ``json=False``). Loggers named in
    ``quiet_loggers`` are held at WARNING.
    """

    quiet_loggers: tuple[str, ...] = ("apscheduler", "redis")

    @classmethod
    def configure(
        cls,
        level: int | str = logging.INFO,
        *,
        json: bool = True,
        stream: IO[str] | None = None,
    ) -> None:
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *_shared_processors(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        renderer: Any = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_shared_processors(),
                processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            )
        )
        root = logging.getLogger()
        root.handlers[:] = [handler]
        root.setLevel(level)
        for name in cls.quiet_loggers:
            logging.getLogger(name).setLevel(max(logging.WARNING, level))


__all__ = ["JsonLoggerFactory"]
