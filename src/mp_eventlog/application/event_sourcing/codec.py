"""Application event sourcing – typed domain events and the EventCodec registry.

Events are a tagged union at the domain boundary: the envelope's ``type`` is
the discriminant and the payload is a dataclass registered for it.  Payloads
written under an older ``schema_version`` are lifted by upcasters, one per
``(type, from_version)``, before the dataclass is built.
"""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Callable, ClassVar, TypeAlias
from uuid import uuid4

from mp_eventlog.kernel.errors import SerializationError, UnknownEventTypeError
from mp_eventlog.kernel.messaging import EventEnvelope

__all__ = ["DomainEvent", "EncodedEvent", "EventCodec", "Upcaster"]

Upcaster: TypeAlias = Callable[[dict[str, Any]], dict[str, Any]]


@dataclasses.dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base for typed events; subclasses set ``event_type`` and ``schema_version``."""

    event_type: ClassVar[str] = ""
    schema_version: ClassVar[int] = 1

    event_id: str = dataclasses.field(default_factory=lambda: str(uuid4()))

    @property
    def entity_id(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DomainEvent":
        return cls(**data)


@dataclasses.dataclass(frozen=True)
class EncodedEvent:
    type: str
    payload: bytes
    schema_version: int
    event_key: str


class EventCodec:
    """Registry mapping ``type`` to its payload class, plus upcasters."""

    def __init__(self) -> None:
        self._types: dict[str, type[DomainEvent]] = {}
        self._upcasters: dict[tuple[str, int], Upcaster] = {}

    def register(self, event_cls: type[DomainEvent]) -> type[DomainEvent]:
        """Register *event_cls* under its ``event_type``; usable as a decorator."""
        if not event_cls.event_type:
            raise ValueError(f"{event_cls.__name__} does not define 'event_type'")
        self._types[event_cls.event_type] = event_cls
        return event_cls

    def register_upcaster(self, event_type: str, from_version: int, upcaster: Upcaster) -> None:
        """Lift payloads of *event_type* from *from_version* to ``from_version + 1``."""
        self._upcasters[(event_type, from_version)] = upcaster

    def upcaster(self, event_type: str, from_version: int) -> Callable[[Upcaster], Upcaster]:
        def decorator(fn: Upcaster) -> Upcaster:
            self.register_upcaster(event_type, from_version, fn)
            return fn

        return decorator

    @property
    def event_types(self) -> list[str]:
        return sorted(self._types)

    def encode(self, event: DomainEvent) -> EncodedEvent:
        event_cls = self._types.get(event.event_type)
        if event_cls is None:
            raise UnknownEventTypeError(event.event_type)
        try:
            payload = json.dumps(event.to_dict(), sort_keys=True, default=str).encode()
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode {type(event).__name__}", payload_type=event.event_type, cause=exc
            ) from exc
        return EncodedEvent(
            type=event.event_type,
            payload=payload,
            schema_version=event_cls.schema_version,
            event_key=event.event_id,
        )

    def decode(self, envelope: EventEnvelope) -> DomainEvent:
        event_cls = self._types.get(envelope.type)
        if event_cls is None:
            raise UnknownEventTypeError(envelope.type)
        try:
            data = json.loads(envelope.payload) if envelope.payload else {}
        except ValueError as exc:
            raise SerializationError(
                f"Payload of '{envelope.id}' is not JSON", payload_type=envelope.type, cause=exc
            ) from exc
        if not isinstance(data, dict):
            raise SerializationError(f"Payload of '{envelope.id}' is not an object", payload_type=envelope.type)

        version = envelope.schema_version
        while version < event_cls.schema_version:
            upcaster = self._upcasters.get((envelope.type, version))
            if upcaster is None:
                raise SerializationError(
                    f"No upcaster for {envelope.type} v{version}", payload_type=envelope.type
                )
            data = upcaster(data)
            version += 1
        if version > event_cls.schema_version:
            raise SerializationError(
                f"{envelope.type} v{version} is newer than supported v{event_cls.schema_version}",
                payload_type=envelope.type,
            )

        data.setdefault("event_id", envelope.dedup_id)
        try:
            return event_cls.from_dict(data)
        except (TypeError, ValueError, KeyError) as exc:
            raise SerializationError(
                f"Cannot build {event_cls.__name__} from '{envelope.id}'",
                payload_type=envelope.type,
                cause=exc,
            ) from exc
