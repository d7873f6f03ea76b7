from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.models import Order
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderItemDjangoRepository,
)
from modules.orders.services import FulfillmentCoordinator, OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def customer():
    return User.objects.create_user(username="cliente", password="testpass123")


@pytest.fixture()
def auth_client(customer):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture()
def make_product():
    def _make(name="Olla de barro", price="2.50", stock=10, **extra):
        return Product.objects.create(
            name=name, price=Decimal(price), stock=stock, **extra
        )

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def order(customer):
    return Order.objects.create(customer=customer)


@pytest.fixture()
def coordinator():
    return FulfillmentCoordinator(
        order_repository=OrderDjangoRepository(),
        item_repository=OrderItemDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        item_repository=OrderItemDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )
