"""Django ORM implementation of the Order and OrderItem repositories.

Neither repository opens its own transaction: writes join the caller's
``transaction.atomic()`` block so the Fulfillment Coordinator decides
what commits together.

Concurrency notes:
- ``get_for_update`` uses ``select_for_update()`` without joins, so only
  the requested row is locked.
- ``write_total`` and ``update_versioned`` are single ``UPDATE``
  statements; neither reads the value it overwrites.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F, Sum
from django.utils import timezone

from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import (
    IOrderItemRepository,
    IOrderRepository,
)
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create / Save / Delete
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order header.

        ``data`` keys:
        - ``customer_id`` (required)
        - ``date`` (optional, defaults to now)

        State and total always start at their defaults.
        """
        order = Order(customer_id=data["customer_id"])
        if data.get("date") is not None:
            order.date = data["date"]
        order.save()
        logger.info("order.created", order_id=str(order.id))
        return order

    def record_events(self, entity: Order) -> None:
        """Publish the aggregate's pending events once the transaction commits."""
        event_bus.publish_on_commit(entity.pull_domain_events())

    def delete(self, entity: Order) -> None:
        order_id = str(entity.id)
        self.record_events(entity)
        entity.delete()
        logger.info("order.deleted", order_id=order_id)

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    def update_versioned(
        self, id: str, expected_version: int, data: Dict[str, Any]
    ) -> int:
        try:
            updated = Order.objects.filter(id=id, version=expected_version).update(
                **data,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return 0
        logger.info(
            "order.versioned_update",
            order_id=str(id),
            expected_version=expected_version,
            rows=updated,
        )
        return updated

    def write_total(self, id: str, total: Decimal) -> int:
        return Order.objects.filter(id=id).update(
            total=total, updated_at=timezone.now()
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its customer and items (items→product).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("customer")
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return Order.objects.filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row (no joins, so nothing else gets locked)."""
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters.

        Supported filter keys are plain ORM look-ups, e.g.
        ``state``, ``customer_id``, ``date__range``.
        """
        queryset = Order.objects.select_related("customer")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)


class OrderItemDjangoRepository(IOrderItemRepository):
    """Concrete line-item repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[OrderItem]:
        try:
            return OrderItem.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[OrderItem]:
        try:
            return OrderItem.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def insert(self, item: OrderItem) -> OrderItem:
        item.save(force_insert=True)
        logger.info(
            "order_item.inserted",
            item_id=str(item.id),
            order_id=str(item.order_id),
        )
        return item

    def update(self, item: OrderItem) -> OrderItem:
        item.save(update_fields=["product", "quantity", "unit_price", "subtotal"])
        logger.info("order_item.updated", item_id=str(item.id))
        return item

    def delete(self, id: str) -> Optional[OrderItem]:
        """Lock, delete, and hand back the removed row.

        The returned instance keeps its ``id``, ``order_id``,
        ``product_id`` and ``quantity``: the row is removed with a
        queryset delete, which leaves the loaded instance untouched.
        """
        item = self.get_for_update(id)
        if item is None:
            return None
        OrderItem.objects.filter(id=item.id).delete()
        logger.info(
            "order_item.deleted",
            item_id=str(item.id),
            order_id=str(item.order_id),
        )
        return item

    def list_by_order(self, order_id: str, lock: bool = False) -> List[OrderItem]:
        try:
            if lock:
                return list(
                    OrderItem.objects.select_for_update()
                    .filter(order_id=order_id)
                    .order_by("id")
                )
            return list(
                OrderItem.objects.select_related("product")
                .filter(order_id=order_id)
                .order_by("created_at", "id")
            )
        except (ValueError, ValidationError):
            return []

    def sum_subtotals(self, order_id: str) -> Decimal:
        result = OrderItem.objects.filter(order_id=order_id).aggregate(
            total=Sum("subtotal")
        )
        return result["total"] or Decimal("0.00")
