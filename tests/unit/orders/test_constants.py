"""Unit tests for money rounding helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderState, line_subtotal, round_money

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "amount,expected",
    [
        ("2.345", "2.35"),
        ("2.344", "2.34"),
        ("-2.345", "-2.35"),
        ("10", "10.00"),
    ],
)
def test_round_money_half_away_from_zero(amount, expected):
    assert round_money(Decimal(amount)) == Decimal(expected)


def test_line_subtotal():
    assert line_subtotal(Decimal("2.50"), 4) == Decimal("10.00")
    assert line_subtotal(Decimal("0.33"), 3) == Decimal("0.99")


def test_state_values():
    assert OrderState.values == ["Pending", "Processed", "Shipped", "Delivered"]
