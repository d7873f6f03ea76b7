"""Order and fulfillment exceptions.

Five families, raised by the services and translated into HTTP
responses by the views:

- validation (``InvalidOrder``, ``InvalidProduct``, ``InvalidQuantity``,
  ``OrderItemNotFound``, ``InvalidOrderState``, ``CustomerNotFound``):
  detected before any transaction opens, nothing was written;
- column range: ``AmountOutOfRange``, a subtotal or total too large to
  store, detected just before the write, transaction rolled back;
- business rule: ``modules.products.exceptions.InsufficientStock``,
  detected under the product row lock, transaction rolled back;
- concurrency: ``ConcurrentModification``, the order header changed
  since the caller read it;
- infrastructure (``TransientStoreFailure``, ``OrderNotFound`` while
  recomputing a total): rolled back, safe to retry.
"""

from __future__ import annotations


class FulfillmentError(Exception):
    """Base class for order / line-item failures."""


class FulfillmentValidationError(FulfillmentError):
    """Rejected input; ``field`` names the offending attribute."""

    field: str = ""


class InvalidOrder(FulfillmentValidationError):
    """The referenced order does not exist."""

    field = "order_id"


class InvalidProduct(FulfillmentValidationError):
    """The referenced product does not exist."""

    field = "product_id"


class InvalidQuantity(FulfillmentValidationError):
    """Line-item quantity is outside 1..100000."""

    field = "quantity"


class AmountOutOfRange(FulfillmentValidationError):
    """A subtotal or order total would exceed 9,999,999.99.

    ``field`` is ``"subtotal"`` or ``"total"``.
    """

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field


class OrderItemNotFound(FulfillmentValidationError):
    """The line item to edit does not exist."""

    field = "item_id"


class InvalidOrderState(FulfillmentValidationError):
    """State is not one of Pending, Processed, Shipped, Delivered."""

    field = "state"


class CustomerNotFound(FulfillmentValidationError):
    """The customer (user) referenced by the order does not exist."""

    field = "customer_id"


class OrderNotFound(FulfillmentError):
    """The requested order does not exist (or vanished mid-transaction)."""


class ConcurrentModification(FulfillmentError):
    """The order row version moved on since the caller read it."""


class TransientStoreFailure(FulfillmentError):
    """Lock-wait timeout or deadlock reported by the database; retryable."""
