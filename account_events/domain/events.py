"""
Domain Events - immutable records of something that happened to an aggregate.

Every event class declares its kind as an EventKind tag. The dispatcher
looks listeners up by that tag, so a heterogeneous list of events can be
dispatched without inspecting Python classes at runtime.

Adding a new event:
1. Add a member to EventKind
2. Add a frozen dataclass subclassing DomainEvent with `kind` set
3. Register listeners for the new kind at startup
"""

import enum
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict

from .value_objects import AccountId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, enum.Enum):
    """Closed set of every domain event kind known to the application"""
    ACCOUNT_CREATED = "account.created"
    ACCOUNT_SUSPENDED = "account.suspended"


@dataclass(frozen=True)
class DomainEvent:
    """
    Base class for domain events.

    Subclasses are frozen dataclasses and must set `kind`.
    """

    kind: ClassVar[EventKind]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event fields to JSON-compatible values"""
        payload: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, AccountId):
                value = str(value)
            payload[f.name] = value
        return payload


@dataclass(frozen=True)
class AccountCreated(DomainEvent):
    """Raised once when a new Account is created"""

    kind: ClassVar[EventKind] = EventKind.ACCOUNT_CREATED

    account_id: AccountId
    name: str
    email: str
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class AccountSuspended(DomainEvent):
    """Raised when an active Account is suspended"""

    kind: ClassVar[EventKind] = EventKind.ACCOUNT_SUSPENDED

    account_id: AccountId
    email: str
    reason: str
    occurred_at: datetime = field(default_factory=_utcnow)
