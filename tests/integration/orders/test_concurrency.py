"""Stock concurrency integration test.

Two threads race to debit the same product. On PostgreSQL and MySQL the
ledger's ``SELECT ... FOR UPDATE`` serialises them; on SQLite the
``BEGIN IMMEDIATE`` transaction mode does.

Scenario:
- Product with **stock = 5**.
- Two threads each try to add a line item of 4 units.
- Exactly one succeeds, the other raises ``InsufficientStock``.
- Final stock is 1 and the order total matches its single item.

Uses ``TransactionTestCase`` so each thread sees committed data and
locking behaves as in production. Point ``DATABASE_URL`` at PostgreSQL
or MySQL to exercise real row locks.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import django
import pytest
from django.contrib.auth import get_user_model
from django.test import TransactionTestCase

from modules.orders.dtos import CreateOrderItemDTO
from modules.orders.models import Order, OrderItem
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderItemDjangoRepository,
)
from modules.orders.services import FulfillmentCoordinator
from modules.products.exceptions import InsufficientStock
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.integration

INITIAL_STOCK = 5
QUANTITY = 4
NUM_WORKERS = 2


class TestStockConcurrency(TransactionTestCase):
    """Two concurrent debits cannot both pass the stock check."""

    def setUp(self):
        customer = get_user_model().objects.create_user(
            username="concurrencia", password="x"
        )
        self.order = Order.objects.create(customer=customer)
        self.product = Product.objects.create(
            name="Olla de barro", price=Decimal("2.50"), stock=INITIAL_STOCK
        )
        self.barrier = Barrier(NUM_WORKERS)

    def _add_item_in_thread(self, thread_id: int) -> str:
        django.db.connections.close_all()
        coordinator = FulfillmentCoordinator(
            order_repository=OrderDjangoRepository(),
            item_repository=OrderItemDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        self.barrier.wait()
        try:
            coordinator.create_item(
                CreateOrderItemDTO(
                    order_id=self.order.id,
                    product_id=self.product.id,
                    quantity=QUANTITY,
                )
            )
            return "success"
        except InsufficientStock as exc:
            assert exc.available == INITIAL_STOCK - QUANTITY
            return "insufficient"
        finally:
            django.db.connections.close_all()

    def test_concurrent_debits_never_oversell(self):
        with ThreadPoolExecutor(max_workers=NUM_WORKERS) as pool:
            results = list(pool.map(self._add_item_in_thread, range(NUM_WORKERS)))

        self.assertEqual(sorted(results), ["insufficient", "success"])

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, INITIAL_STOCK - QUANTITY)

        self.order.refresh_from_db()
        self.assertEqual(OrderItem.objects.filter(order=self.order).count(), 1)
        self.assertEqual(self.order.total, Decimal("10.00"))
