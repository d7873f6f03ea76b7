"""Repository base contracts.

Lookups follow a null-object convention: a missing row, or an id that is
not a valid UUID, yields ``None`` rather than an exception. Callers turn
``None`` into the domain error that fits their use case.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ILookupRepository(ABC, Generic[T]):
    """Single-row access by primary key, with or without a row lock."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve a row by primary key."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[T]:
        """Retrieve a row holding ``SELECT ... FOR UPDATE`` on it.

        Only meaningful inside ``transaction.atomic()``; the lock lasts
        until the enclosing transaction ends.
        """


class IRepository(ILookupRepository[T]):
    """Lookup plus filtered listing, for aggregates browsed by the API."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """List rows matching ``filters`` (field lookups)."""
