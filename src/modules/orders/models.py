"""Order and OrderItem models.

Rules implemented:
- ``Order.total`` is derived: it always equals the rounded sum of the
  item subtotals.  Only ``OrderTotalAggregator`` writes it.
- ``Order.version`` is an optimistic-concurrency counter for header
  edits (customer, date, state).  Total recomputation does not bump it.
- ``OrderItem.subtotal`` is ``round(unit_price * quantity, 2)`` as of the
  item's last mutation; only ``FulfillmentCoordinator`` writes it.
- Deleting an order cascades to its items; a product referenced by any
  item cannot be deleted (PROTECT).
- The customer FK uses PROTECT to preserve order history.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    INITIAL_STATE,
    MAX_ITEM_QUANTITY,
    MIN_ITEM_QUANTITY,
    OrderState,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    date: models.DateTimeField = models.DateTimeField(default=timezone.now)
    state: models.CharField = models.CharField(
        max_length=20,
        choices=OrderState.choices,
        default=INITIAL_STATE,
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )
    version: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1, editable=False
    )

    class Meta:
        db_table = "orders"
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["state"], name="orders_state_idx"),
            models.Index(fields=["-date"], name="orders_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Order {self.id} ({self.state}, ${self.total})"


class OrderItem(BaseModel):
    """Line item reserving ``quantity`` units of ``product`` for ``order``.

    ``unit_price`` snapshots the product price used for the last
    mutation, so ``subtotal`` stays explainable if the catalog price
    changes later.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=MIN_ITEM_QUANTITY,
        validators=[
            MinValueValidator(MIN_ITEM_QUANTITY),
            MaxValueValidator(MAX_ITEM_QUANTITY),
        ],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=8,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity} (${self.subtotal})"
