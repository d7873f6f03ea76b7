"""Order domain constants."""

from decimal import ROUND_HALF_UP, Decimal

from django.db import models


class OrderState(models.TextChoices):
    PENDING = "Pending", "Pendiente"
    PROCESSED = "Processed", "Procesado"
    SHIPPED = "Shipped", "Enviado"
    DELIVERED = "Delivered", "Entregado"


INITIAL_STATE = OrderState.PENDING

MIN_ITEM_QUANTITY = 1
MAX_ITEM_QUANTITY = 100_000

MONEY_QUANTUM = Decimal("0.01")
# Largest value a decimal(9, 2) subtotal or total column can hold.
MAX_MONEY = Decimal("9999999.99")
# ROUND_HALF_UP rounds ties away from zero (2.345 -> 2.35, -2.345 -> -2.35).
MONEY_ROUNDING = ROUND_HALF_UP


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimals, half away from zero."""
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)


def line_subtotal(price: Decimal, quantity: int) -> Decimal:
    """``round(price * quantity, 2)`` for one order line."""
    return round_money(Decimal(price) * quantity)
