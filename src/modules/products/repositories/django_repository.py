"""Django ORM implementation of the Product repository.

Error handling follows the Null Object pattern: look-ups return
``None`` instead of raising; the caller decides how to translate a
missing entity (``InvalidProduct`` before a transaction, ``ProductNotFound``
inside the ledger, 404 in a view).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key (no lock).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Product]:
        """Lock the product row until the enclosing transaction ends.

        Concurrent callers asking for the same row block here, so the
        stock value they eventually read already reflects any debit the
        lock holder committed.
        """
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"stock__gt": 0}
            {"price__lte": "100.00"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save_stock(self, entity: Product) -> Product:
        entity.save(update_fields=["stock"])
        return entity
