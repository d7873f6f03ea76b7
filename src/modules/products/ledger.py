"""Inventory Ledger: the only writer of ``Product.stock`` for orders.

Every operation reads the product row with ``SELECT … FOR UPDATE``.
Two transactions debiting the same product therefore serialise on the
row lock: the second one re-reads the stock *after* the first commits
(or rolls back), and can never pass its check against a stale value.
That is what keeps ``stock >= 0`` under concurrent requests.

The ledger never opens a transaction itself; it must run inside the
caller's ``transaction.atomic()`` block so its writes commit or roll
back together with the line-item rows.  Calling it outside one is a
programming error and raises ``RuntimeError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable

import structlog
from django.db import transaction

from modules.products.exceptions import InsufficientStock, ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class InventoryLedger:
    """Debit/credit product stock with non-negativity enforcement."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def lock(self, product_ids: Iterable) -> Dict[str, Product]:
        """Lock several product rows, always in ascending id order.

        A fixed acquisition order means two transactions locking the
        same pair of products cannot deadlock on each other.  Missing
        products are simply absent from the returned mapping (keyed by
        ``str(id)``).
        """
        self._require_transaction()
        locked: Dict[str, Product] = {}
        for product_id in sorted({str(pid) for pid in product_ids}):
            product = self._product_repo.get_for_update(product_id)
            if product is not None:
                locked[product_id] = product
        return locked

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def debit(self, product_id, quantity: int) -> Product:
        """Take ``quantity`` units out of stock.

        Raises:
            InsufficientStock: stock under the lock is below ``quantity``.
            ProductNotFound: the product row does not exist.
        """
        self._require_positive(quantity)
        product = self._locked(product_id)
        if product.stock < quantity:
            logger.info(
                "ledger.debit_rejected",
                product_id=str(product.id),
                requested=quantity,
                available=product.stock,
            )
            raise InsufficientStock(
                product_id=product.id, requested=quantity, available=product.stock
            )
        product.stock -= quantity
        self._product_repo.save_stock(product)
        logger.info(
            "ledger.debited",
            product_id=str(product.id),
            quantity=quantity,
            remaining=product.stock,
        )
        return product

    def credit(self, product_id, quantity: int) -> Product:
        """Return ``quantity`` previously debited units to stock.

        Raises:
            ProductNotFound: the product row does not exist.
        """
        self._require_positive(quantity)
        product = self._locked(product_id)
        product.stock += quantity
        self._product_repo.save_stock(product)
        logger.info(
            "ledger.credited",
            product_id=str(product.id),
            quantity=quantity,
            restored_stock=product.stock,
        )
        return product

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _locked(self, product_id) -> Product:
        self._require_transaction()
        product = self._product_repo.get_for_update(str(product_id))
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        return product

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity < 1:
            raise ValueError(f"Ledger quantity must be positive, got {quantity}.")

    @staticmethod
    def _require_transaction() -> None:
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError(
                "InventoryLedger must be used inside transaction.atomic()."
            )
