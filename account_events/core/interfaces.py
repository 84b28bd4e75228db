"""
Core interfaces for Account Events.

Abstract seams between the domain, the application layer and the
infrastructure that implements persistence and listener side effects.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from account_events.domain.entities import Account
    from account_events.domain.events import DomainEvent
    from account_events.domain.value_objects import AccountId


class IAccountRepository(ABC):
    """
    Interface for account storage and retrieval.

    Implementations must track every aggregate they hand out or accept,
    so the Unit of Work can collect pending events and persist changes
    on commit.
    """

    @abstractmethod
    async def add(self, account: 'Account') -> None:
        """
        Stage a new account for insertion and start tracking it.

        Args:
            account: Account aggregate to insert on commit
        """
        pass

    @abstractmethod
    async def get(self, account_id: 'AccountId') -> Optional['Account']:
        """
        Load an account and start tracking it.

        Args:
            account_id: Account identifier

        Returns:
            Account if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_all(self) -> List['Account']:
        """Return all stored accounts, oldest first (read-only, not tracked)"""
        pass

    @property
    @abstractmethod
    def seen(self) -> List['Account']:
        """Aggregates tracked by this repository, in the order they were first tracked"""
        pass


class DomainEventListener(ABC):
    """
    Listener capability for one kind of domain event.

    Listeners are registered per EventKind at startup and awaited one at
    a time during commit. Raising from `handle_event` aborts the commit.
    """

    @abstractmethod
    async def handle_event(self, event: 'DomainEvent') -> None:
        """
        Handle one domain event.

        Args:
            event: The event being dispatched
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
