"""Product and inventory exceptions.

Raised by the Inventory Ledger and the product service.  The API layer
(Views) catches these and translates them into HTTP responses.
"""

from __future__ import annotations

from typing import Any


class ProductNotFound(Exception):
    """The requested product does not exist."""


class InsufficientStock(Exception):
    """A debit asked for more units than the product has in stock.

    ``available`` is the stock observed under the row lock, so the caller
    can offer a corrected quantity.
    """

    def __init__(self, product_id: Any, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}."
        )
