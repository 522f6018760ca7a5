"""Kernel messaging – log entries, event envelopes and their field codec.

A :class:`LogEntry` is what the ordered log hands back: an id assigned by the
log plus a flat ``field -> bytes`` map.  An :class:`EventEnvelope` is the typed
view the rest of the core works with.

Log ids follow the ``"<milliseconds>-<sequence>"`` form; they are totally
ordered within a stream, so :func:`parse_log_id` gives a sortable key.
"""
from __future__ import annotations

import dataclasses
import json
from datetime import UTC, datetime
from typing import Any, Mapping

FIELD_TYPE = "type"
FIELD_PAYLOAD = "payload"
FIELD_PRODUCED_AT = "produced_at"
FIELD_SCHEMA_VERSION = "schema_version"
FIELD_EVENT_KEY = "event_key"

_RESERVED = frozenset(
    {FIELD_TYPE, FIELD_PAYLOAD, FIELD_PRODUCED_AT, FIELD_SCHEMA_VERSION, FIELD_EVENT_KEY}
)


def to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode()
    return str(value).encode()


def to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return str(value)


def parse_log_id(entry_id: str) -> tuple[int, int]:
    """Return ``(milliseconds, sequence)`` for a log id such as ``"1700-3"``."""
    millis, _, seq = entry_id.partition("-")
    return int(millis), int(seq or 0)


def log_id_timestamp(entry_id: str) -> datetime:
    """Wall-clock time encoded in the millisecond part of a log id."""
    millis, _ = parse_log_id(entry_id)
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """A raw entry as stored in the ordered log."""

    id: str
    fields: dict[str, bytes] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_raw(cls, entry_id: Any, fields: Mapping[Any, Any] | None) -> "LogEntry":
        """Normalise ``bytes``/``str`` keys and values coming from a client library."""
        normalised = {to_str(k): to_bytes(v) for k, v in (fields or {}).items()}
        return cls(id=to_str(entry_id), fields=normalised)


@dataclasses.dataclass(frozen=True)
class EventEnvelope:
    """The unit flowing through the log. Immutable once appended."""

    id: str
    """Log position assigned by the log; monotonically ordered within a stream."""

    stream_key: str
    type: str
    """Domain discriminant (e.g. ``"CREATED"``)."""

    payload: bytes
    produced_at: datetime
    schema_version: int = 1
    event_key: str | None = None
    """Producer-assigned logical id; identical for re-appended copies of one event."""

    @property
    def dedup_id(self) -> str:
        """Identity used to recognise the same logical event twice."""
        return self.event_key or self.id

    @property
    def position(self) -> tuple[int, int]:
        return parse_log_id(self.id)

    def payload_json(self) -> Any:
        return json.loads(self.payload) if self.payload else None


def encode_fields(
    event_type: str,
    payload: bytes,
    *,
    produced_at: datetime,
    schema_version: int = 1,
    event_key: str | None = None,
) -> dict[str, bytes]:
    """Build the field map appended to the log for one event."""
    fields = {
        FIELD_TYPE: event_type.encode(),
        FIELD_PAYLOAD: payload,
        FIELD_PRODUCED_AT: produced_at.isoformat().encode(),
        FIELD_SCHEMA_VERSION: str(schema_version).encode(),
    }
    if event_key is not None:
        fields[FIELD_EVENT_KEY] = event_key.encode()
    return fields


def decode_entry(stream_key: str, entry: LogEntry) -> EventEnvelope:
    """Build an :class:`EventEnvelope` from a raw entry.

    Decoding never raises: entries written by other producers (a plain field
    map with no ``payload`` field) get their whole field map as a JSON payload,
    and unparseable metadata falls back to defaults so the entry still reaches
    the handler and, if the handler rejects it, the dead-letter log.
    """
    fields = entry.fields
    if FIELD_PAYLOAD in fields:
        payload = fields[FIELD_PAYLOAD]
    else:
        plain = {k: to_str(v) for k, v in fields.items() if k not in _RESERVED}
        payload = json.dumps(plain, sort_keys=True).encode()

    try:
        produced_at = datetime.fromisoformat(to_str(fields[FIELD_PRODUCED_AT]))
    except (KeyError, ValueError):
        try:
            produced_at = log_id_timestamp(entry.id)
        except ValueError:
            produced_at = datetime.fromtimestamp(0, tz=UTC)

    try:
        schema_version = int(to_str(fields.get(FIELD_SCHEMA_VERSION, b"1")))
    except ValueError:
        schema_version = 1

    event_key = fields.get(FIELD_EVENT_KEY)
    return EventEnvelope(
        id=entry.id,
        stream_key=stream_key,
        type=to_str(fields.get(FIELD_TYPE, b"")),
        payload=payload,
        produced_at=produced_at,
        schema_version=schema_version,
        event_key=to_str(event_key) if event_key is not None else None,
    )


__all__ = [
    "EventEnvelope",
    "LogEntry",
    "decode_entry",
    "encode_fields",
    "log_id_timestamp",
    "parse_log_id",
    "to_bytes",
    "to_str",
]
