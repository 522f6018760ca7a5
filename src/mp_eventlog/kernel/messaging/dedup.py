"""Kernel messaging – dedup markers and claim results."""
from __future__ import annotations

import dataclasses
import json
from datetime import datetime

from mp_eventlog.kernel.errors import SerializationError


@dataclasses.dataclass(frozen=True)
class DedupMarker:
    """Existence of a marker means the event must not be applied again."""

    event_id: str
    first_seen_at: datetime
    owner: str | None = None

    def to_bytes(self) -> bytes:
        return json.dumps(
            {
                "event_id": self.event_id,
                "first_seen_at": self.first_seen_at.isoformat(),
                "owner": self.owner,
            }
        ).encode()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DedupMarker":
        try:
            data = json.loads(raw)
            return cls(
                event_id=data["event_id"],
                first_seen_at=datetime.fromisoformat(data["first_seen_at"]),
                owner=data.get("owner"),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError("Malformed dedup marker", payload_type="DedupMarker", cause=exc) from exc


@dataclasses.dataclass(frozen=True)
class ClaimResult:
    """Outcome of :meth:`DedupGuard.mark_if_absent`.

    ``applied`` is ``True`` only for the caller whose conditional write won.
    When ``False``, ``marker`` holds the existing marker if it was requested
    and could be read.
    """

    applied: bool
    marker: DedupMarker | None = None

    def owned_by(self, owner: str) -> bool:
        """``True`` when the claim was won now or earlier by *owner*."""
        if self.applied:
            return True
        return self.marker is not None and self.marker.owner == owner


__all__ = ["ClaimResult", "DedupMarker"]
