"""Products – the product aggregate kept by event sourcing."""
from mp_eventlog.application.products.events import (
    ProductCreated,
    ProductDeleted,
    ProductUpdated,
    build_product_codec,
    product_reducer,
)
from mp_eventlog.application.products.model import Product
from mp_eventlog.application.products.service import ProductEventSourcingService

__all__ = [
    "Product",
    "ProductCreated",
    "ProductDeleted",
    "ProductEventSourcingService",
    "ProductUpdated",
    "build_product_codec",
    "product_reducer",
]
