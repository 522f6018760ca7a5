"""Kernel messaging – envelopes, dedup markers, dead letters and store ports."""
from mp_eventlog.kernel.messaging.dead_letter import DeadLetterEntry
from mp_eventlog.kernel.messaging.dedup import ClaimResult, DedupMarker
from mp_eventlog.kernel.messaging.envelope import (
    EventEnvelope,
    LogEntry,
    decode_entry,
    encode_fields,
    log_id_timestamp,
    parse_log_id,
)
from mp_eventlog.kernel.messaging.ports import (
    ConsumerGroupState,
    KeyValueStore,
    OrderedLog,
    PendingSummary,
)

__all__ = [
    "ClaimResult",
    "ConsumerGroupState",
    "DeadLetterEntry",
    "DedupMarker",
    "EventEnvelope",
    "KeyValueStore",
    "LogEntry",
    "OrderedLog",
    "PendingSummary",
    "decode_entry",
    "encode_fields",
    "log_id_timestamp",
    "parse_log_id",
]
