"""Orders – OrderEvent and the adapter that turns it into a stream handler."""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Awaitable, Callable

from mp_eventlog.application.eventlog import EventHandler
from mp_eventlog.kernel.errors import SerializationError
from mp_eventlog.kernel.messaging import EventEnvelope

__all__ = ["ORDER_CREATED", "OrderEvent", "order_handler"]

ORDER_CREATED = "ORDER_CREATED"


@dataclasses.dataclass(frozen=True)
class OrderEvent:
    id: str
    customer: str
    amount: float

    def to_payload(self) -> bytes:
        return json.dumps(dataclasses.asdict(self), sort_keys=True).encode()

    @classmethod
    def from_envelope(cls, envelope: EventEnvelope) -> "OrderEvent":
        """Decode the payload; plain field maps from other producers work too.

        Raises :class:`SerializationError` for anything that is not an order,
        which sends the entry to the dead-letter log.
        """
        try:
            data: Any = json.loads(envelope.payload)
            return cls(id=str(data["id"]), customer=str(data["customer"]), amount=float(data["amount"]))
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError(
                f"Entry '{envelope.id}' is not an order", payload_type="OrderEvent", cause=exc
            ) from exc


def order_handler(callback: Callable[[OrderEvent], Awaitable[None]]) -> EventHandler:
    """Wrap a typed *callback* as the stream processor's handler."""

    async def handle(envelope: EventEnvelope) -> None:
        await callback(OrderEvent.from_envelope(envelope))

    return handle
