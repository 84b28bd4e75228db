"""
Unit of Work pattern for transaction management and event dispatch.

Commit is the single point where:
1. Pending domain events are collected from every tracked aggregate
2. Each event is dispatched to its listeners, one after another
3. All aggregate changes are persisted in one transaction
4. Event buffers are cleared

Failure policy is fail-fast. A listener error or a persistence error
aborts the commit and leaves every event buffer populated. Listeners
may already have run when persistence fails, so a retried commit
delivers those events again: listeners must be idempotent.
"""

import enum
import logging
from abc import ABC, abstractmethod
from typing import List, TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .aggregate import Aggregate
from .events import DomainEvent

if TYPE_CHECKING:
    from account_events.application.dispatcher import DomainEventDispatcher
    from account_events.core.interfaces import DomainEventListener, IAccountRepository

logger = logging.getLogger(__name__)


class CommitState(str, enum.Enum):
    """
    Per-commit state machine.

    IDLE → COLLECTING → DISPATCHING → PERSISTING → CLEARED
                            ↓              ↓
                         ABORTED        ABORTED
    """
    IDLE = "idle"
    COLLECTING = "collecting"
    DISPATCHING = "dispatching"
    PERSISTING = "persisting"
    CLEARED = "cleared"
    ABORTED = "aborted"


class UnitOfWorkError(Exception):
    """Base exception for commit failures"""
    pass


class ListenerInvocationFailed(UnitOfWorkError):
    """Raised when a listener fails while handling an event"""

    def __init__(self, event: DomainEvent, listener: 'DomainEventListener'):
        self.event = event
        self.listener = listener
        super().__init__(
            f"Listener {listener!r} failed handling {event.kind.value} "
            f"for account {getattr(event, 'account_id', '?')}"
        )


class PersistenceFailed(UnitOfWorkError):
    """Raised when aggregate changes could not be persisted"""
    pass


class AbstractUnitOfWork(ABC):
    """
    Abstract Unit of Work.

    Provides:
    - The commit sequence (collect → dispatch → persist → clear)
    - Repository access (accounts)
    - Async context manager: commit on success, rollback on error

    Subclasses supply the persistence collaborator: which aggregates
    are tracked and how to persist them.
    """

    accounts: 'IAccountRepository'

    def __init__(self, dispatcher: 'DomainEventDispatcher'):
        self._dispatcher = dispatcher
        self.state = CommitState.IDLE

    async def __aenter__(self):
        """Enter async context"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """
        Exit async context.

        On success: commits (dispatches events, persists, clears buffers)
        On exception: rolls back (no events dispatched)
        """
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    async def commit(self):
        """
        Dispatch pending events, persist changes and clear event buffers.

        Events from one aggregate keep the order they were raised in.
        Aggregates are visited in the order they were first tracked.
        Events a listener raises on an aggregate during dispatch are not
        part of this commit; they stay pending for the next one.

        Raises:
            ListenerInvocationFailed: A listener raised (nothing persisted)
            PersistenceFailed: Changes could not be saved (listeners already ran)
        """
        self.state = CommitState.COLLECTING
        aggregates = [a for a in self.tracked_aggregates() if a.has_pending_events]
        collected = [(aggregate, len(aggregate.pending_events)) for aggregate in aggregates]
        events: List[DomainEvent] = [
            event for aggregate in aggregates for event in aggregate.pending_events
        ]
        logger.info(f"Commit: {len(aggregates)} aggregates modified")
        logger.info(f"Commit: {len(events)} domain events raised")

        try:
            self.state = CommitState.DISPATCHING
            for event in events:
                await self._dispatcher.dispatch(event)

            self.state = CommitState.PERSISTING
            await self.persist_all()
        except Exception:
            self.state = CommitState.ABORTED
            logger.warning(
                f"⚠️ Commit aborted - {len(events)} events left pending on "
                f"{len(aggregates)} aggregates"
            )
            raise

        for aggregate, count in collected:
            aggregate.clear_events(count)
        self.state = CommitState.CLEARED
        logger.debug(f"✅ Commit complete, {len(events)} events dispatched")

    @abstractmethod
    def tracked_aggregates(self) -> List[Aggregate]:
        """Aggregates created or loaded within this unit of work, in tracking order"""
        pass

    @abstractmethod
    async def persist_all(self):
        """
        Persist every tracked aggregate atomically.

        Raises:
            PersistenceFailed: If the changes could not be saved
        """
        pass

    @abstractmethod
    async def rollback(self):
        """Rollback transaction"""
        pass

    @abstractmethod
    async def close(self):
        """Close resources"""
        pass


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work.

    Features:
    - Transaction management via SQLAlchemy session
    - Explicit change set kept by the repositories
    - Repository initialization
    """

    def __init__(self, session: AsyncSession, dispatcher: 'DomainEventDispatcher'):
        """
        Initialize Unit of Work.

        Args:
            session: SQLAlchemy async session
            dispatcher: Dispatcher used to deliver events on commit
        """
        super().__init__(dispatcher)
        self._session = session

        # Import here to avoid circular dependencies
        from account_events.repositories.account_repository import AccountRepository

        self.accounts = AccountRepository(session)

    def tracked_aggregates(self) -> List[Aggregate]:
        return list(self.accounts.seen)

    async def persist_all(self):
        """
        Write tracked aggregates to their rows and commit the session.

        On failure the session is rolled back and PersistenceFailed is raised.
        """
        try:
            await self.accounts.stage_changes()
            await self._session.commit()
            logger.debug("✅ Transaction committed")
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to persist changes: {e}", exc_info=True)
            await self._session.rollback()
            raise PersistenceFailed(f"Could not persist changes: {e}") from e

    async def rollback(self):
        """Discard all pending changes"""
        await self._session.rollback()
        logger.debug("↩️  Transaction rolled back")

    async def close(self):
        """Close session and release resources"""
        await self._session.close()


def get_unit_of_work(
    session: AsyncSession,
    dispatcher: 'DomainEventDispatcher'
) -> AbstractUnitOfWork:
    """
    Factory function for Unit of Work.

    Args:
        session: SQLAlchemy async session
        dispatcher: Dispatcher built at startup

    Returns:
        Configured Unit of Work instance

    Usage:
        async with get_unit_of_work(db, dispatcher) as uow:
            account = Account.create("Ana", "ana@x.com")
            await uow.accounts.add(account)
            # Events dispatched and changes committed on context exit
    """
    return SQLAlchemyUnitOfWork(session, dispatcher)
