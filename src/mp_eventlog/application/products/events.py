"""Products – CREATED / UPDATED / DELETED events, their codec and the state reducer.

Version 1 payloads carried the serialized product itself (``id`` rather
than ``product_id``); the registered upcasters lift them to version 2.
"""
from __future__ import annotations

import dataclasses
from typing import Any, ClassVar

from mp_eventlog.application.event_sourcing import DomainEvent, EventCodec
from mp_eventlog.application.eventlog import Reducer
from mp_eventlog.application.products.model import Product
from mp_eventlog.kernel.errors import SerializationError
from mp_eventlog.kernel.messaging import EventEnvelope
from mp_eventlog.observability.logging import get_logger

__all__ = [
    "ProductCreated",
    "ProductDeleted",
    "ProductUpdated",
    "build_product_codec",
    "product_reducer",
]

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, kw_only=True)
class _ProductSnapshotEvent(DomainEvent):
    schema_version: ClassVar[int] = 2

    product_id: str
    name: str
    description: str = ""
    price: float = 0.0

    @property
    def entity_id(self) -> str:
        return self.product_id

    @classmethod
    def of(cls, product: Product) -> "_ProductSnapshotEvent":
        return cls(
            product_id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
        )

    def to_product(self) -> Product:
        return Product(id=self.product_id, name=self.name, description=self.description, price=self.price)


@dataclasses.dataclass(frozen=True, kw_only=True)
class ProductCreated(_ProductSnapshotEvent):
    event_type: ClassVar[str] = "CREATED"


@dataclasses.dataclass(frozen=True, kw_only=True)
class ProductUpdated(_ProductSnapshotEvent):
    event_type: ClassVar[str] = "UPDATED"


@dataclasses.dataclass(frozen=True, kw_only=True)
class ProductDeleted(DomainEvent):
    event_type: ClassVar[str] = "DELETED"

    product_id: str

    @property
    def entity_id(self) -> str:
        return self.product_id


def _product_v1_to_v2(data: dict[str, Any]) -> dict[str, Any]:
    lifted = dict(data)
    if "product_id" not in lifted and "id" in lifted:
        lifted["product_id"] = lifted.pop("id")
    lifted["price"] = float(lifted.get("price") or 0.0)
    lifted["description"] = lifted.get("description") or ""
    return lifted


def build_product_codec() -> EventCodec:
    codec = EventCodec()
    for event_cls in (ProductCreated, ProductUpdated, ProductDeleted):
        codec.register(event_cls)
    codec.register_upcaster(ProductCreated.event_type, 1, _product_v1_to_v2)
    codec.register_upcaster(ProductUpdated.event_type, 1, _product_v1_to_v2)
    return codec


def product_reducer(codec: EventCodec) -> Reducer:
    """Fold product events into ``{product_id: product_state}``.

    Entries that cannot be decoded are skipped with a warning, so one bad
    entry never blocks reconstruction of the rest.
    """

    def reduce(state: dict[str, dict[str, Any]], envelope: EventEnvelope) -> None:
        try:
            event = codec.decode(envelope)
        except SerializationError as exc:
            logger.warning("products.undecodable_event", entry_id=envelope.id, **exc.log_fields())
            return
        if isinstance(event, ProductDeleted):
            state.pop(event.product_id, None)
        elif isinstance(event, _ProductSnapshotEvent):
            state[event.product_id] = event.to_product().to_state()

    return reduce
