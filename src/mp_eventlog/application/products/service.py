"""Products – ProductEventSourcingService."""
from __future__ import annotations

from mp_eventlog.application.event_sourcing import AggregateEventSourcingService, EventCodec
from mp_eventlog.application.eventlog import DedupGuard, EventLogStore, SnapshotManager
from mp_eventlog.application.products.events import (
    ProductCreated,
    ProductDeleted,
    ProductUpdated,
    build_product_codec,
    product_reducer,
)
from mp_eventlog.application.products.model import Product
from mp_eventlog.config.eventlog import EventLogSettings
from mp_eventlog.kernel.errors import ValidationError
from mp_eventlog.kernel.messaging import KeyValueStore, OrderedLog
from mp_eventlog.kernel.time import Clock
from mp_eventlog.observability.metrics import Metrics
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["ProductEventSourcingService"]


class ProductEventSourcingService(AggregateEventSourcingService):
    """Records product lifecycle events and reconstructs the product catalogue."""

    @classmethod
    def create(
        cls,
        log: OrderedLog,
        kv: KeyValueStore,
        settings: EventLogSettings,
        *,
        metrics: Metrics | None = None,
        policy: StoreCallPolicy | None = None,
        clock: Clock | None = None,
    ) -> "ProductEventSourcingService":
        codec = build_product_codec()
        store = EventLogStore(log, policy=policy, clock=clock)
        snapshots = SnapshotManager(
            store,
            kv,
            product_reducer(codec),
            threshold=settings.snapshot_threshold,
            applied_ttl_seconds=settings.product_idempotency_ttl_seconds,
            metrics=metrics,
            policy=policy,
            clock=clock,
        )
        recorded = DedupGuard(
            kv,
            prefix=f"{settings.product_stream_key}:recorded:",
            default_ttl_seconds=settings.product_idempotency_ttl_seconds,
            policy=policy,
            clock=clock,
        )
        return cls(store, snapshots, codec, stream_key=settings.product_stream_key, recorded=recorded)

    def __init__(
        self,
        store: EventLogStore,
        snapshots: SnapshotManager,
        codec: EventCodec | None = None,
        *,
        stream_key: str = "product:events:stream",
        recorded: DedupGuard | None = None,
    ) -> None:
        super().__init__(
            store,
            snapshots,
            codec or build_product_codec(),
            stream_key=stream_key,
            recorded=recorded,
        )

    async def record_create(self, product: Product) -> str | None:
        return await self.record(ProductCreated.of(product.validate()))

    async def record_update(self, product: Product) -> str | None:
        return await self.record(ProductUpdated.of(product.validate()))

    async def record_delete(self, product_id: str) -> str | None:
        if not product_id or not product_id.strip():
            raise ValidationError("product", {"id": "Product id is required"})
        return await self.record(ProductDeleted(product_id=product_id))

    async def reconstruct_products(self) -> list[Product]:
        state = await self.reconstruct()
        return [Product.from_state(state[key]) for key in sorted(state)]
