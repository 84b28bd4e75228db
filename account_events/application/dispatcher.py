"""
Domain event dispatcher and listener registry.

The registry is filled once at startup with (EventKind, listener)
entries and then frozen into a read-only mapping. The dispatcher looks
listeners up by the event's kind tag, so supporting a new event kind
only means registering listeners for it.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from account_events.core.interfaces import DomainEventListener
from account_events.domain.events import DomainEvent, EventKind
from account_events.domain.unit_of_work import ListenerInvocationFailed

logger = logging.getLogger(__name__)

ListenerMap = Mapping[EventKind, Tuple[DomainEventListener, ...]]


class ListenerRegistry:
    """
    Startup-time listener configuration.

    Usage:
        registry = (
            ListenerRegistry()
            .add_listener(EventKind.ACCOUNT_CREATED, SendEmailListener())
            .add_listener(EventKind.ACCOUNT_CREATED, PublishListener())
        )
        dispatcher = DomainEventDispatcher(registry.build())
    """

    def __init__(self):
        self._listeners: Dict[EventKind, List[DomainEventListener]] = {}

    def add_listener(
        self,
        kind: Union[EventKind, str],
        listener: DomainEventListener
    ) -> "ListenerRegistry":
        """
        Register a listener for an event kind.

        Listeners for the same kind are invoked in registration order.

        Raises:
            TypeError: If listener is not a DomainEventListener
            ValueError: If kind is not a known EventKind
        """
        if not isinstance(listener, DomainEventListener):
            raise TypeError(
                f"Listener must implement DomainEventListener, got {type(listener).__name__}"
            )
        self._listeners.setdefault(EventKind(kind), []).append(listener)
        return self

    def build(self) -> ListenerMap:
        """Freeze the registrations into a read-only mapping"""
        return MappingProxyType(
            {kind: tuple(listeners) for kind, listeners in self._listeners.items()}
        )


class DomainEventDispatcher:
    """
    Invokes the listeners registered for an event's kind.

    Listeners run sequentially in registration order; each one is
    awaited before the next starts. The first failure stops dispatch
    and surfaces as ListenerInvocationFailed.
    """

    def __init__(self, listeners: Mapping[EventKind, Sequence[DomainEventListener]]):
        self._listeners: ListenerMap = MappingProxyType(
            {EventKind(kind): tuple(items) for kind, items in listeners.items()}
        )

    @classmethod
    def from_registry(cls, registry: ListenerRegistry) -> "DomainEventDispatcher":
        return cls(registry.build())

    def listeners_for(self, kind: EventKind) -> Tuple[DomainEventListener, ...]:
        return self._listeners.get(kind, ())

    async def dispatch(self, event: DomainEvent) -> None:
        """
        Deliver one event to every listener registered for its kind.

        No registered listeners is not an error: a warning is logged and
        nothing else happens.

        Raises:
            ListenerInvocationFailed: If a listener raises
        """
        listeners = self.listeners_for(event.kind)
        if not listeners:
            logger.warning(f"No listener registered for event {event.kind.value}")
            return

        for listener in listeners:
            try:
                await listener.handle_event(event)
            except Exception as e:
                logger.error(
                    f"❌ Listener {listener!r} failed for event {event.kind.value}: {e}",
                    exc_info=True
                )
                raise ListenerInvocationFailed(event, listener) from e
