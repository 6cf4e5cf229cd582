"""Contracts between event publishers and in-process subscribers.

Stored events reach subscribers through the outbox relay, which rebuilds
each one from its recorded name and payload.  A bus therefore also
resolves event names back to the classes its handlers subscribed to.
"""

from __future__ import annotations

from typing import Generic, Optional, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def event_class(self, event_name: str) -> Optional[Type[DomainEvent]]:
        """Subscribed event class called ``event_name``, if any."""
        ...
