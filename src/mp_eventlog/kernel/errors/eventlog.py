"""Event-log errors — the failure taxonomy of the consumption and sourcing core.

Each error states how the caller recovers:

* :class:`AppendFailed` – retryable, though a lost reply may have recorded the entry.
* :class:`DedupUnavailable` – retryable, domain logic must not run.
* :class:`ProcessingFailed` – entry-specific, routed to the dead-letter log.
* :class:`AcknowledgeFailed` – entry stays pending and is redelivered.
* :class:`DeadLetterFailed` – entry stays pending on the main stream.
* :class:`SnapshotFailed` – live consumption continues, retried on the next threshold.
"""

from __future__ import annotations

from typing import Any

from mp_eventlog.kernel.errors.base import BaseError


class EventLogError(BaseError):
    """Base class for failures raised by the event-log core."""

    default_code = "event_log_error"

    def __init__(
        self,
        message: str,
        *,
        stream_key: str | None = None,
        entry_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        detail = dict(kwargs.pop("detail", None) or {})
        if stream_key is not None:
            detail.setdefault("stream_key", stream_key)
        if entry_id is not None:
            detail.setdefault("entry_id", entry_id)
        super().__init__(message, detail=detail, **kwargs)
        self.stream_key = stream_key
        self.entry_id = entry_id


class AppendFailed(EventLogError):
    """Appending to the log failed.

    The append was sent at most once. A timeout can still hide a write that
    landed, so a caller that retries must tolerate a duplicate entry.
    """

    default_code = "append_failed"
    retryable = True


class DedupUnavailable(EventLogError):
    """The dedup store could not confirm a claim; fail closed."""

    default_code = "dedup_unavailable"
    retryable = True


class ProcessingFailed(EventLogError):
    """Domain processing of a single entry raised."""

    default_code = "processing_failed"

    @property
    def reason(self) -> str:
        if self.cause is not None:
            return f"{type(self.cause).__name__}: {self.cause}"
        return self.message


class AcknowledgeFailed(EventLogError):
    """Acknowledging an entry failed; it remains in the pending set."""

    default_code = "acknowledge_failed"
    retryable = True


class DeadLetterFailed(EventLogError):
    """Moving an entry to the dead-letter log failed."""

    default_code = "dead_letter_failed"
    retryable = True


class SnapshotFailed(EventLogError):
    """Snapshot compaction failed; the previous snapshot is left untouched."""

    default_code = "snapshot_failed"
    retryable = True


__all__ = [
    "AcknowledgeFailed",
    "AppendFailed",
    "DeadLetterFailed",
    "DedupUnavailable",
    "EventLogError",
    "ProcessingFailed",
    "SnapshotFailed",
]
