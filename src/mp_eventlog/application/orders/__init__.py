"""Orders – the order-stream event and its handler adapter."""
from mp_eventlog.application.orders.events import ORDER_CREATED, OrderEvent, order_handler

__all__ = ["ORDER_CREATED", "OrderEvent", "order_handler"]
