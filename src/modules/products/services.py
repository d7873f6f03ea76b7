"""Product service layer (read side of the catalog).

Catalog CRUD is handled elsewhere; this service backs the product
picker used while building orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from modules.core.search import rank_by_name
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product queries.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return a list of products, optionally filtered."""
        return self._repo.list(filters)

    def search_products(
        self, query: str = "", products: Optional[QuerySet | List[Product]] = None
    ) -> List[Product]:
        """Accent-insensitive name search, best matches first.

        ``products`` lets the caller pre-filter (price range, stock);
        by default the whole catalog is searched.
        """
        source = self._repo.list() if products is None else products
        ranked = rank_by_name(source, query, name_of=lambda p: p.name)
        logger.info("product.searched", query=query, matches=len(ranked))
        return ranked
