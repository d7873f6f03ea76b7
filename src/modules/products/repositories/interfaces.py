"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Catalog reads plus the one write the Inventory Ledger needs.

    ``get_for_update`` is how the ledger pins a product row before it
    reads ``stock``; ``save_stock`` must only be called on a row obtained
    that way.
    """

    @abstractmethod
    def save_stock(self, entity: Product) -> Product:
        """Persist only the ``stock`` column of an already-locked product."""
