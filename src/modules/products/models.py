"""Product model: catalog entry plus the stock counter the ledger owns.

Rules enforced by database check constraints:
- price is strictly positive (``products_price_positive``);
- stock never drops below zero (``products_stock_non_negative``).

Once a product is referenced by order items, ``stock`` is only written
by ``modules.products.ledger.InventoryLedger``.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.validators import (
    MaxValueValidator,
    MinLengthValidator,
    MinValueValidator,
)
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)

MAX_PRICE = Decimal("999999.99")
MAX_STOCK = 100_000


class Product(BaseModel):
    name = models.CharField(max_length=120, validators=[MinLengthValidator(4)])
    description = models.TextField(max_length=1000, blank=True, default="")
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal("0.01")),
            MaxValueValidator(MAX_PRICE),
        ],
    )
    stock = models.PositiveIntegerField(
        default=0,
        validators=[MaxValueValidator(MAX_STOCK)],
    )

    class Meta:
        db_table = "products"
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
                stock=self.stock,
            )

    def __str__(self) -> str:
        return f"{self.name} (${self.price})"
