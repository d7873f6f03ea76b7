"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  They are
the contracts between the API layer (DRF serializers) and the services,
and are immutable (``frozen=True``).

DTOs only coerce types (UUID strings, ints, datetimes).  Range checks
such as ``quantity >= 1`` belong to ``FulfillmentCoordinator`` so that
every caller gets the same typed error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class CreateOrderDTO(BaseModel):
    """Order header creation.  State and total are not accepted."""

    model_config = ConfigDict(frozen=True)

    customer_id: int
    date: Optional[datetime] = None


class UpdateOrderDTO(BaseModel):
    """Order header edit guarded by the version the caller last read."""

    model_config = ConfigDict(frozen=True)

    version: int
    customer_id: Optional[int] = None
    date: Optional[datetime] = None
    state: Optional[str] = None

    @field_validator("state")
    @classmethod
    def strip_state(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class CreateOrderItemDTO(BaseModel):
    """Add ``quantity`` units of ``product_id`` to ``order_id``."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    product_id: UUID
    quantity: int


class EditOrderItemDTO(BaseModel):
    """Re-point ``item_id`` to ``product_id`` with ``quantity`` units."""

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    product_id: UUID
    quantity: int
