"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderItemAdded,
    OrderItemChanged,
    OrderItemRemoved,
    OrderUpdated,
)
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class OrderLifecycleHandler(IEventHandler[DomainEvent]):
    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "order.event.published",
            event_name=event.event_name,
            order_id=str(event.aggregate_id),
        )


class OrderItemHandler(IEventHandler[DomainEvent]):
    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "order_item.event.published",
            event_name=event.event_name,
            order_id=str(event.aggregate_id),
            item_id=str(getattr(event, "item_id", "")),
        )


order_lifecycle_handler = OrderLifecycleHandler()
order_item_handler = OrderItemHandler()

SUBSCRIPTIONS = [
    (OrderCreated, order_lifecycle_handler),
    (OrderUpdated, order_lifecycle_handler),
    (OrderDeleted, order_lifecycle_handler),
    (OrderItemAdded, order_item_handler),
    (OrderItemChanged, order_item_handler),
    (OrderItemRemoved, order_item_handler),
]
