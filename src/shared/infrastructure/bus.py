"""In-process event bus."""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Synchronous bus; handlers run in the caller's thread.

    Handler errors propagate to whoever triggered delivery. For
    ``publish_on_commit`` that is Django's on-commit hook, after the
    data is already durable.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        return list(self._handlers.get(event_class, ()))

    def publish(self, event: DomainEvent) -> None:
        for handler in self.handlers_for(type(event)):
            handler.handle(event)

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        pending = list(events)
        if not pending:
            return

        def deliver() -> None:
            logger.debug(
                "event_bus.delivering",
                events=[event.event_name for event in pending],
            )
            for event in pending:
                self.publish(event)

        transaction.on_commit(deliver)


event_bus = InMemoryEventBus()
