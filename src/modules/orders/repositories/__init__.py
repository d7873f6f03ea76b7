"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderItemDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderItemRepository,
    IOrderRepository,
)

__all__ = [
    "IOrderItemRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
    "OrderItemDjangoRepository",
]
