"""End-to-end fulfillment behaviour against the test database.

Walks the reference scenario (stock 10, price 2.50) and checks the
stock, subtotal and order-total properties after every step.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import MAX_ITEM_QUANTITY
from modules.orders.dtos import CreateOrderItemDTO, EditOrderItemDTO
from modules.orders.exceptions import (
    AmountOutOfRange,
    InvalidOrder,
    InvalidProduct,
    InvalidQuantity,
    OrderItemNotFound,
)
from modules.orders.models import OrderItem
from modules.products.exceptions import InsufficientStock

pytestmark = pytest.mark.unit


def _create(coordinator, order, product, quantity):
    return coordinator.create_item(
        CreateOrderItemDTO(order_id=order.id, product_id=product.id, quantity=quantity)
    )


def _edit(coordinator, item, product, quantity):
    return coordinator.edit_item(
        EditOrderItemDTO(item_id=item.id, product_id=product.id, quantity=quantity)
    )


def _assert_total_consistent(order):
    order.refresh_from_db()
    subtotals = sum(
        (item.subtotal for item in OrderItem.objects.filter(order=order)),
        Decimal("0.00"),
    )
    assert order.total == subtotals.quantize(Decimal("0.01"))


def test_reference_scenario(coordinator, order, product):
    item = _create(coordinator, order, product, 4)
    product.refresh_from_db()
    order.refresh_from_db()
    assert item.subtotal == Decimal("10.00")
    assert product.stock == 6
    assert order.total == Decimal("10.00")

    with pytest.raises(InsufficientStock) as exc_info:
        _create(coordinator, order, product, 10)
    assert exc_info.value.available == 6

    item = _edit(coordinator, item, product, 6)
    product.refresh_from_db()
    order.refresh_from_db()
    assert product.stock == 4
    assert item.subtotal == Decimal("15.00")
    assert order.total == Decimal("15.00")

    assert coordinator.delete_item(item.id).id == item.id
    product.refresh_from_db()
    order.refresh_from_db()
    assert product.stock == 10
    assert order.total == Decimal("0.00")


def test_failed_create_changes_nothing(coordinator, order, product):
    _create(coordinator, order, product, 7)
    items_before = list(OrderItem.objects.filter(order=order).values_list("id", flat=True))

    with pytest.raises(InsufficientStock):
        _create(coordinator, order, product, 4)

    product.refresh_from_db()
    order.refresh_from_db()
    assert product.stock == 3
    assert order.total == Decimal("17.50")
    assert list(
        OrderItem.objects.filter(order=order).values_list("id", flat=True)
    ) == items_before


def test_create_then_delete_restores_stock(coordinator, order, make_product):
    product = make_product(stock=37)
    item = _create(coordinator, order, product, 12)

    coordinator.delete_item(item.id)

    product.refresh_from_db()
    assert product.stock == 37


def test_reassignment_moves_reservation(coordinator, order, make_product):
    product_a = make_product(name="Balde azul", stock=10, price="3.10")
    product_b = make_product(name="Escoba recta", stock=10, price="4.25")
    item = _create(coordinator, order, product_a, 3)

    item = _edit(coordinator, item, product_b, 5)

    product_a.refresh_from_db()
    product_b.refresh_from_db()
    assert product_a.stock == 10
    assert product_b.stock == 5
    assert item.product_id == product_b.id
    assert item.unit_price == Decimal("4.25")
    assert item.subtotal == Decimal("21.25")
    _assert_total_consistent(order)


def test_edit_with_insufficient_stock_on_new_product_rolls_back(
    coordinator, order, make_product
):
    product_a = make_product(name="Balde azul", stock=10)
    product_b = make_product(name="Escoba recta", stock=2)
    item = _create(coordinator, order, product_a, 3)

    with pytest.raises(InsufficientStock) as exc_info:
        _edit(coordinator, item, product_b, 5)

    assert exc_info.value.available == 2
    product_a.refresh_from_db()
    product_b.refresh_from_db()
    item.refresh_from_db()
    assert (product_a.stock, product_b.stock) == (7, 2)
    assert (item.product_id, item.quantity) == (product_a.id, 3)
    _assert_total_consistent(order)


def test_same_product_growth_checks_remaining_stock(coordinator, order, product):
    item = _create(coordinator, order, product, 8)

    with pytest.raises(InsufficientStock) as exc_info:
        _edit(coordinator, item, product, 11)

    assert exc_info.value.available == 2
    product.refresh_from_db()
    assert product.stock == 2


def test_same_product_reduction_credits_immediately(coordinator, order, product):
    item = _create(coordinator, order, product, 8)
    _edit(coordinator, item, product, 1)

    product.refresh_from_db()
    assert product.stock == 9
    _assert_total_consistent(order)


def test_total_tracks_several_items(coordinator, order, make_product):
    cheap = make_product(name="Clavo chico", price="0.05", stock=1000)
    pricey = make_product(name="Taladro", price="349.99", stock=5)

    _create(coordinator, order, cheap, 333)
    second = _create(coordinator, order, pricey, 2)
    _assert_total_consistent(order)
    assert order.total == Decimal("716.63")

    coordinator.delete_item(second.id)
    _assert_total_consistent(order)
    assert order.total == Decimal("16.65")


def test_stock_never_negative(coordinator, order, product):
    for quantity in (3, 3, 3, 3):
        try:
            _create(coordinator, order, product, quantity)
        except InsufficientStock:
            pass
        product.refresh_from_db()
        assert product.stock >= 0
    assert product.stock == 1


class TestValidation:
    def test_zero_quantity(self, coordinator, order, product):
        with pytest.raises(InvalidQuantity):
            _create(coordinator, order, product, 0)

    def test_unknown_order(self, coordinator, product):
        with pytest.raises(InvalidOrder):
            coordinator.create_item(
                CreateOrderItemDTO(order_id=uuid4(), product_id=product.id, quantity=1)
            )

    def test_unknown_product(self, coordinator, order):
        with pytest.raises(InvalidProduct):
            coordinator.create_item(
                CreateOrderItemDTO(order_id=order.id, product_id=uuid4(), quantity=1)
            )

    def test_edit_unknown_item(self, coordinator, product):
        with pytest.raises(OrderItemNotFound):
            coordinator.edit_item(
                EditOrderItemDTO(item_id=uuid4(), product_id=product.id, quantity=1)
            )

    def test_edit_to_zero_quantity_keeps_item(self, coordinator, order, product):
        item = _create(coordinator, order, product, 2)
        with pytest.raises(InvalidQuantity):
            _edit(coordinator, item, product, 0)
        item.refresh_from_db()
        assert item.quantity == 2

    def test_delete_unknown_item_is_noop(self, coordinator):
        assert coordinator.delete_item(uuid4()) is None


def test_quantity_above_maximum_is_rejected(coordinator, order, product):
    with pytest.raises(InvalidQuantity):
        _create(coordinator, order, product, MAX_ITEM_QUANTITY + 1)

    product.refresh_from_db()
    assert product.stock == 10
    assert not OrderItem.objects.filter(order=order).exists()


def test_subtotal_too_large_for_column_rolls_back(coordinator, order, make_product):
    costly = make_product(name="Piano de cola", price="999999.99", stock=100)

    with pytest.raises(AmountOutOfRange) as exc_info:
        _create(coordinator, order, costly, 20)

    assert exc_info.value.field == "subtotal"
    costly.refresh_from_db()
    order.refresh_from_db()
    assert costly.stock == 100
    assert order.total == Decimal("0.00")
    assert not OrderItem.objects.filter(order=order).exists()


def test_total_too_large_for_column_rolls_back(coordinator, order, make_product):
    costly = make_product(name="Piano de cola", price="999999.99", stock=100)
    _create(coordinator, order, costly, 6)

    with pytest.raises(AmountOutOfRange) as exc_info:
        _create(coordinator, order, costly, 6)

    assert exc_info.value.field == "total"
    costly.refresh_from_db()
    order.refresh_from_db()
    assert costly.stock == 94
    assert order.total == Decimal("5999999.94")
    assert OrderItem.objects.filter(order=order).count() == 1


def test_edit_into_oversized_subtotal_keeps_original_item(
    coordinator, order, make_product
):
    costly = make_product(name="Piano de cola", price="999999.99", stock=100)
    item = _create(coordinator, order, costly, 2)

    with pytest.raises(AmountOutOfRange):
        _edit(coordinator, item, costly, 11)

    item.refresh_from_db()
    costly.refresh_from_db()
    assert item.quantity == 2
    assert costly.stock == 98
    _assert_total_consistent(order)
