"""Order and line-item repository interfaces.

The Service Layer depends exclusively on these contracts (DIP).
Neither repository validates business rules: they are pure
persistence boundaries and run inside the caller's transaction.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import ILookupRepository, IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order header (``customer_id``, optional ``date``)."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """True if an order with this id exists (no lock, no joins)."""

    @abstractmethod
    def update_versioned(
        self, id: str, expected_version: int, data: Dict[str, Any]
    ) -> int:
        """Update header fields only if ``version == expected_version``.

        Bumps ``version`` and returns the number of rows updated (0 or 1).
        """

    @abstractmethod
    def write_total(self, id: str, total: Decimal) -> int:
        """Overwrite ``total`` with a single UPDATE; returns rows updated."""

    @abstractmethod
    def record_events(self, entity: Order) -> None:
        """Hand the aggregate's pending domain events to the bus (on commit)."""

    @abstractmethod
    def delete(self, entity: Order) -> None:
        """Delete an order row (items cascade)."""


class IOrderItemRepository(ILookupRepository["OrderItem"]):
    """Repository contract for ``OrderItem`` rows scoped to an order.

    Items are never listed across orders, so there is no generic ``list``.
    """

    @abstractmethod
    def insert(self, item: OrderItem) -> OrderItem:
        """Insert a new line item row."""

    @abstractmethod
    def update(self, item: OrderItem) -> OrderItem:
        """Write product, quantity, unit price and subtotal of an item."""

    @abstractmethod
    def delete(self, id: str) -> Optional[OrderItem]:
        """Delete a line item and return the pre-delete row.

        Returns ``None`` if no row with that id exists.
        """

    @abstractmethod
    def list_by_order(self, order_id: str, lock: bool = False) -> List[OrderItem]:
        """All line items of an order, oldest first.

        With ``lock=True`` every returned row is locked for update.
        """

    @abstractmethod
    def sum_subtotals(self, order_id: str) -> Decimal:
        """Sum of ``subtotal`` over the persisted items of an order (0 if none)."""
