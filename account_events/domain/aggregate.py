"""
Aggregate base class - the unit of consistency and the source of domain events.

Mutating methods on a subclass call `_raise_event()` to buffer what
happened. Nothing is dispatched or persisted here: the Unit of Work
drains the buffer on commit and clears it once dispatch and
persistence have both succeeded.
"""

from typing import List, Optional, Tuple

from .events import DomainEvent


class Aggregate:
    """
    Aggregate root with a pending-event buffer.

    Invariants:
    1. `id` is assigned at construction and never reassigned
    2. Pending events keep the order they were raised in
    3. The buffer only shrinks through `clear_events()`
    """

    def __init__(self, id):
        self._id = id
        self._events: List[DomainEvent] = []

    @property
    def id(self):
        return self._id

    @property
    def pending_events(self) -> Tuple[DomainEvent, ...]:
        """Pending events in the order they were raised (read-only copy)"""
        return tuple(self._events)

    @property
    def has_pending_events(self) -> bool:
        return len(self._events) > 0

    def _raise_event(self, event: DomainEvent) -> None:
        """Buffer an event. Only the aggregate's own mutations call this."""
        self._events.append(event)

    def clear_events(self, count: Optional[int] = None) -> None:
        """
        Empty the buffer. Called by the Unit of Work after a successful commit.

        Args:
            count: Drop only the oldest `count` events; events raised after
                they were collected stay pending
        """
        if count is None:
            self._events.clear()
        else:
            del self._events[:count]
