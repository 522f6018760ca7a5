"""Unit tests for DomainEvent and EventCodec."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, ClassVar

import pytest

from mp_eventlog.application.event_sourcing import DomainEvent, EventCodec
from mp_eventlog.kernel.errors import SerializationError, UnknownEventTypeError
from mp_eventlog.kernel.messaging import EventEnvelope
from mp_eventlog.testing import FakeClock


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, kw_only=True)
class Renamed(DomainEvent):
    event_type: ClassVar[str] = "RENAMED"
    schema_version: ClassVar[int] = 3

    account_id: str
    display_name: str

    @property
    def entity_id(self) -> str:
        return self.account_id


@dataclasses.dataclass(frozen=True, kw_only=True)
class Unregistered(DomainEvent):
    event_type: ClassVar[str] = "UNREGISTERED"


def _codec() -> EventCodec:
    codec = EventCodec()
    codec.register(Renamed)

    @codec.upcaster("RENAMED", 1)
    def v1_to_v2(data: dict[str, Any]) -> dict[str, Any]:
        lifted = dict(data)
        lifted["account_id"] = lifted.pop("account")
        return lifted

    @codec.upcaster("RENAMED", 2)
    def v2_to_v3(data: dict[str, Any]) -> dict[str, Any]:
        lifted = dict(data)
        lifted["display_name"] = lifted.pop("name")
        return lifted

    return codec


def _envelope(type_: str, data: Any, version: int, event_key: str | None = None) -> EventEnvelope:
    return EventEnvelope(
        id="5-0",
        stream_key="accounts",
        type=type_,
        payload=json.dumps(data).encode(),
        produced_at=FakeClock().now(),
        schema_version=version,
        event_key=event_key,
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestEncode:
    def test_encode_uses_class_version_and_event_id(self) -> None:
        event = Renamed(account_id="a-1", display_name="Ann")
        encoded = _codec().encode(event)
        assert encoded.type == "RENAMED"
        assert encoded.schema_version == 3
        assert encoded.event_key == event.event_id
        assert json.loads(encoded.payload)["display_name"] == "Ann"

    def test_unregistered_type(self) -> None:
        with pytest.raises(UnknownEventTypeError):
            _codec().encode(Unregistered())

    def test_register_requires_event_type(self) -> None:
        with pytest.raises(ValueError):
            EventCodec().register(DomainEvent)

    def test_event_types(self) -> None:
        assert _codec().event_types == ["RENAMED"]


class TestDecode:
    def test_current_version(self) -> None:
        codec = _codec()
        event = Renamed(account_id="a-1", display_name="Ann")
        encoded = codec.encode(event)
        env = EventEnvelope(
            id="9-0", stream_key="accounts", type=encoded.type, payload=encoded.payload,
            produced_at=FakeClock().now(), schema_version=encoded.schema_version, event_key=encoded.event_key,
        )
        assert codec.decode(env) == event

    def test_upcasts_through_every_version(self) -> None:
        event = _codec().decode(_envelope("RENAMED", {"account": "a-1", "name": "Ann"}, 1, event_key="ev-1"))
        assert event == Renamed(account_id="a-1", display_name="Ann", event_id="ev-1")

    def test_missing_event_id_falls_back_to_log_id(self) -> None:
        event = _codec().decode(_envelope("RENAMED", {"account_id": "a", "display_name": "b"}, 3))
        assert event.event_id == "5-0"

    def test_missing_upcaster(self) -> None:
        codec = EventCodec()
        codec.register(Renamed)
        with pytest.raises(SerializationError, match="No upcaster"):
            codec.decode(_envelope("RENAMED", {"account": "a"}, 2))

    def test_newer_version_is_rejected(self) -> None:
        with pytest.raises(SerializationError, match="newer"):
            _codec().decode(_envelope("RENAMED", {"account_id": "a", "display_name": "b"}, 4))

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownEventTypeError):
            _codec().decode(_envelope("DELETED", {}, 1))

    @pytest.mark.parametrize("payload", [b"not json", b"[1, 2]", b'{"account_id": "a"}'])
    def test_bad_payloads(self, payload: bytes) -> None:
        env = EventEnvelope(
            id="1-0", stream_key="s", type="RENAMED", payload=payload,
            produced_at=FakeClock().now(), schema_version=3,
        )
        with pytest.raises(SerializationError):
            _codec().decode(env)


class TestDomainEvent:
    def test_event_ids_are_unique(self) -> None:
        assert Renamed(account_id="a", display_name="b").event_id != Renamed(account_id="a", display_name="b").event_id

    def test_entity_id(self) -> None:
        assert Renamed(account_id="a", display_name="b").entity_id == "a"

    def test_base_entity_id_is_abstract(self) -> None:
        with pytest.raises(NotImplementedError):
            Unregistered().entity_id
