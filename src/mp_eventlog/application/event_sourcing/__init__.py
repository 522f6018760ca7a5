"""Application — Event Sourcing."""

from mp_eventlog.application.event_sourcing.codec import DomainEvent, EncodedEvent, EventCodec, Upcaster
from mp_eventlog.application.event_sourcing.service import AggregateEventSourcingService

__all__ = [
    "AggregateEventSourcingService",
    "DomainEvent",
    "EncodedEvent",
    "EventCodec",
    "Upcaster",
]
