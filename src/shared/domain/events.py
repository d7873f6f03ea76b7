"""Domain event primitives.

An aggregate records events while a use case runs; its repository hands
them to the bus with ``publish_on_commit`` so that a rolled-back mutation
never announces itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=_utcnow)
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)


class DomainEventMixin:
    """Pending-event buffer for aggregate roots.

    Django builds model instances without calling a cooperative
    ``__init__``, so the buffer is created on first use.
    """

    def _pending_events(self) -> List[DomainEvent]:
        try:
            return self.__dict__["_domain_events"]
        except KeyError:
            return self.__dict__.setdefault("_domain_events", [])

    def add_domain_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def clear_domain_events(self) -> None:
        self._pending_events().clear()

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return the pending events and forget them."""
        events = list(self._pending_events())
        self.clear_domain_events()
        return events

    @property
    def domain_events(self) -> List[DomainEvent]:
        return list(self._pending_events())
