"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order header is created."""


@dataclass(frozen=True)
class OrderUpdated(DomainEvent):
    """Raised when customer, date or state of an order change."""


@dataclass(frozen=True)
class OrderDeleted(DomainEvent):
    """Raised when an order and its items are removed."""


@dataclass(frozen=True)
class OrderItemAdded(DomainEvent):
    """Raised when a line item is committed; ``aggregate_id`` is the order."""

    item_id: Optional[UUID] = None


@dataclass(frozen=True)
class OrderItemChanged(DomainEvent):
    item_id: Optional[UUID] = None


@dataclass(frozen=True)
class OrderItemRemoved(DomainEvent):
    item_id: Optional[UUID] = None
