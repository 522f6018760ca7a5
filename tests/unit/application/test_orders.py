"""Unit tests for OrderEvent and order_handler."""

from __future__ import annotations

import asyncio
import json

import pytest

from mp_eventlog.application.orders import ORDER_CREATED, OrderEvent, order_handler
from mp_eventlog.kernel.errors import SerializationError
from mp_eventlog.kernel.messaging import EventEnvelope, LogEntry, decode_entry
from mp_eventlog.testing import FakeClock


def _envelope(payload: bytes) -> EventEnvelope:
    return EventEnvelope(
        id="1-0", stream_key="orders", type=ORDER_CREATED, payload=payload, produced_at=FakeClock().now()
    )


class TestOrderEvent:
    def test_payload_round_trip(self) -> None:
        order = OrderEvent(id="o-1", customer="ann", amount=9.5)
        assert OrderEvent.from_envelope(_envelope(order.to_payload())) == order

    def test_plain_field_map_from_another_producer(self) -> None:
        entry = LogEntry(id="2-0", fields={"id": b"o-2", "customer": b"bob", "amount": b"12"})
        assert OrderEvent.from_envelope(decode_entry("orders", entry)) == OrderEvent("o-2", "bob", 12.0)

    @pytest.mark.parametrize(
        "payload",
        [b"", b"nope", json.dumps({"id": "o"}).encode(), json.dumps({"id": "o", "customer": "c", "amount": "x"}).encode()],
    )
    def test_not_an_order(self, payload: bytes) -> None:
        with pytest.raises(SerializationError):
            OrderEvent.from_envelope(_envelope(payload))


class TestOrderHandler:
    def test_callback_receives_typed_order(self) -> None:
        async def run() -> None:
            seen: list[OrderEvent] = []

            async def on_order(order: OrderEvent) -> None:
                seen.append(order)

            handler = order_handler(on_order)
            await handler(_envelope(OrderEvent("o-1", "ann", 1.0).to_payload()))
            assert seen == [OrderEvent("o-1", "ann", 1.0)]

        asyncio.run(run())

    def test_bad_payload_raises_before_callback(self) -> None:
        async def run() -> None:
            called = False

            async def on_order(order: OrderEvent) -> None:
                nonlocal called
                called = True

            with pytest.raises(SerializationError):
                await order_handler(on_order)(_envelope(b"{}"))
            assert not called

        asyncio.run(run())
