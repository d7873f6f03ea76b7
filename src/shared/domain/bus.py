"""Event bus contracts."""

from __future__ import annotations

from typing import Generic, Iterable, List, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Routes an event to the handlers subscribed to its exact class."""

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]: ...

    def publish(self, event: DomainEvent) -> None: ...

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """Deliver ``events`` once the current transaction commits.

        Nothing is delivered if it rolls back.
        """
        ...
