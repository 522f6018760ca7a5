"""Kernel messaging – dead-letter entry."""
from __future__ import annotations

import dataclasses
from datetime import UTC, datetime

from mp_eventlog.kernel.messaging.envelope import LogEntry, to_str


@dataclasses.dataclass(frozen=True)
class DeadLetterEntry:
    """An entry that failed domain processing, kept for later reconciliation."""

    original_id: str
    stream_key: str
    failure_reason: str
    payload: bytes = b""
    type: str = ""
    moved_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    id: str | None = None
    """Position in the dead-letter log (``None`` until appended)."""

    def to_fields(self) -> dict[str, bytes]:
        return {
            "original_id": self.original_id.encode(),
            "stream_key": self.stream_key.encode(),
            "type": self.type.encode(),
            "reason": self.failure_reason.encode(),
            "payload": self.payload,
            "moved_at": self.moved_at.isoformat().encode(),
        }

    @classmethod
    def from_log_entry(cls, entry: LogEntry) -> "DeadLetterEntry":
        f = entry.fields
        try:
            moved_at = datetime.fromisoformat(to_str(f.get("moved_at", b"")))
        except ValueError:
            moved_at = datetime.fromtimestamp(0, tz=UTC)
        return cls(
            id=entry.id,
            original_id=to_str(f.get("original_id", b"")),
            stream_key=to_str(f.get("stream_key", b"")),
            failure_reason=to_str(f.get("reason", b"")),
            payload=f.get("payload", b""),
            type=to_str(f.get("type", b"")),
            moved_at=moved_at,
        )


__all__ = ["DeadLetterEntry"]
