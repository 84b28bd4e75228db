"""
Integration tests for the Unit of Work commit sequence.

These tests run against a real SQLite database file.
"""
import asyncio

import pytest
from sqlalchemy import select

from account_events.application.dispatcher import DomainEventDispatcher, ListenerRegistry
from account_events.core.interfaces import DomainEventListener
from account_events.db.models import AccountModel
from account_events.domain.entities import Account, AccountStatus
from account_events.domain.events import AccountCreated, EventKind
from account_events.domain.unit_of_work import (
    CommitState,
    ListenerInvocationFailed,
    PersistenceFailed,
    SQLAlchemyUnitOfWork,
)
from tests.fakes import FailingListener, RecordingListener


def _dispatcher(calls, *extra):
    registry = (
        ListenerRegistry()
        .add_listener(EventKind.ACCOUNT_CREATED, RecordingListener("send_email", calls))
        .add_listener(EventKind.ACCOUNT_CREATED, RecordingListener("integration_event", calls))
        .add_listener(EventKind.ACCOUNT_SUSPENDED, RecordingListener("account_suspended", calls))
    )
    for kind, listener in extra:
        registry.add_listener(kind, listener)
    return DomainEventDispatcher.from_registry(registry)


async def _stored_accounts(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(AccountModel))
        return result.scalars().all()


class RowCheckListener(DomainEventListener):
    """Records whether the account row already exists when the event arrives"""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.row_seen = []

    async def handle_event(self, event):
        async with self.session_factory() as session:
            row = await session.get(AccountModel, str(event.account_id))
        self.row_seen.append(row is not None)


@pytest.mark.asyncio
async def test_create_account_dispatches_then_persists(database, calls):
    """Ana scenario: both AccountCreated listeners fire once, then the row is stored"""
    row_check = RowCheckListener(database)
    dispatcher = _dispatcher(calls, (EventKind.ACCOUNT_CREATED, row_check))

    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, dispatcher)
        account = Account.create("Ana", "ana@x.com")
        await uow.accounts.add(account)

        await uow.commit()

    assert [name for name, _ in calls] == ["send_email", "integration_event"]
    for _, event in calls:
        assert isinstance(event, AccountCreated)
        assert (event.account_id, event.name, event.email) == (account.id, "Ana", "ana@x.com")

    assert row_check.row_seen == [False]
    assert account.pending_events == ()
    assert uow.state == CommitState.CLEARED

    rows = await _stored_accounts(database)
    assert [(r.id, r.name, r.email) for r in rows] == [(str(account.id), "Ana", "ana@x.com")]


@pytest.mark.asyncio
async def test_commit_without_pending_events(database, calls):
    """Nothing pending: zero dispatches and the commit still succeeds"""
    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        await uow.commit()

    assert calls == []
    assert uow.state == CommitState.CLEARED


@pytest.mark.asyncio
async def test_events_dispatched_in_raise_order(database, calls):
    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        account = Account.create("Ana", "ana@x.com")
        account.suspend("chargeback")
        await uow.accounts.add(account)

        await uow.commit()

    assert [name for name, _ in calls] == [
        "send_email", "integration_event", "account_suspended"
    ]
    rows = await _stored_accounts(database)
    assert rows[0].status == AccountStatus.SUSPENDED.value
    assert rows[0].suspension_reason == "chargeback"


@pytest.mark.asyncio
async def test_aggregates_visited_in_tracking_order(database, calls):
    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        ana = Account.create("Ana", "ana@x.com")
        bob = Account.create("Bob", "bob@x.com")
        await uow.accounts.add(ana)
        await uow.accounts.add(bob)

        await uow.commit()

    emails = [event.email for name, event in calls if name == "send_email"]
    assert emails == ["ana@x.com", "bob@x.com"]
    assert ana.pending_events == () and bob.pending_events == ()


@pytest.mark.asyncio
async def test_suspend_loaded_account(database, calls):
    """Loaded aggregates are tracked; only the new event is dispatched"""
    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        account = Account.create("Ana", "ana@x.com")
        await uow.accounts.add(account)
        await uow.commit()
    calls.clear()

    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        loaded = await uow.accounts.get(account.id)
        assert loaded.pending_events == ()
        assert await uow.accounts.get(account.id) is loaded

        loaded.suspend("fraud")
        await uow.commit()

    assert [name for name, _ in calls] == ["account_suspended"]
    rows = await _stored_accounts(database)
    assert rows[0].status == "suspended"


@pytest.mark.asyncio
async def test_listener_failure_aborts_commit(database, calls):
    """Fail-fast: nothing persisted and the buffer stays populated"""
    dispatcher = _dispatcher(calls, (EventKind.ACCOUNT_CREATED, FailingListener()))

    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, dispatcher)
        account = Account.create("Ana", "ana@x.com")
        await uow.accounts.add(account)

        with pytest.raises(ListenerInvocationFailed):
            await uow.commit()

    assert uow.state == CommitState.ABORTED
    assert len(account.pending_events) == 1
    assert await _stored_accounts(database) == []


@pytest.mark.asyncio
async def test_listener_failure_skips_remaining_events(database, calls):
    """The first failing event stops dispatch; later events and buffers are untouched"""
    dispatcher = _dispatcher(calls, (EventKind.ACCOUNT_CREATED, FailingListener()))

    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, dispatcher)
        ana = Account.create("Ana", "ana@x.com")
        ana.suspend("chargeback")
        bob = Account.create("Bob", "bob@x.com")
        await uow.accounts.add(ana)
        await uow.accounts.add(bob)

        with pytest.raises(ListenerInvocationFailed) as exc_info:
            await uow.commit()

    assert exc_info.value.event is ana.pending_events[0]
    assert [(name, event.account_id) for name, event in calls] == [
        ("send_email", ana.id), ("integration_event", ana.id)
    ]
    assert len(ana.pending_events) == 2
    assert len(bob.pending_events) == 1
    assert uow.state == CommitState.ABORTED
    assert await _stored_accounts(database) == []


class SuspendOnCreateListener(DomainEventListener):
    """Suspends the account while its AccountCreated event is being handled"""

    def __init__(self, account):
        self.account = account

    async def handle_event(self, event):
        self.account.suspend("flagged on signup")


@pytest.mark.asyncio
async def test_event_raised_during_dispatch_stays_pending(database, calls):
    async with database() as session:
        account = Account.create("Ana", "ana@x.com")
        dispatcher = _dispatcher(
            calls, (EventKind.ACCOUNT_CREATED, SuspendOnCreateListener(account))
        )
        uow = SQLAlchemyUnitOfWork(session, dispatcher)
        await uow.accounts.add(account)

        await uow.commit()

    assert [name for name, _ in calls] == ["send_email", "integration_event"]
    assert [event.kind for event in account.pending_events] == [EventKind.ACCOUNT_SUSPENDED]


@pytest.mark.asyncio
async def test_concurrent_commits_all_persist(database):
    """Each unit of work has its own session; overlapping commits keep every row"""

    class SlowListener(DomainEventListener):
        async def handle_event(self, event):
            await asyncio.sleep(0.01)

    dispatcher = DomainEventDispatcher.from_registry(
        ListenerRegistry().add_listener(EventKind.ACCOUNT_CREATED, SlowListener())
    )

    async def create(i):
        async with database() as session:
            uow = SQLAlchemyUnitOfWork(session, dispatcher)
            await uow.accounts.add(Account.create(f"User {i}", f"user{i}@x.com"))
            await uow.commit()
            return uow.state

    states = await asyncio.gather(*(create(i) for i in range(20)))

    assert states == [CommitState.CLEARED] * 20
    assert len(await _stored_accounts(database)) == 20


@pytest.mark.asyncio
async def test_persistence_failure_keeps_events_for_retry(database, calls):
    """
    Persistence fails after dispatch: buffer left populated, nothing stored.

    A retried commit dispatches the same events again (at-least-once).
    """
    async with database() as session:
        uow = SQLAlchemyUnitOfWork(session, _dispatcher(calls))
        account = Account.create("Ana", "ana@x.com")
        await uow.accounts.add(account)
        account.name = None  # violates NOT NULL on accounts.name

        with pytest.raises(PersistenceFailed):
            await uow.commit()

        assert uow.state == CommitState.ABORTED
        assert [name for name, _ in calls] == ["send_email", "integration_event"]
        assert len(account.pending_events) == 1
        assert await _stored_accounts(database) == []

        account.name = "Ana"
        await uow.commit()

    assert uow.state == CommitState.CLEARED
    assert len(calls) == 4
    assert calls[0][1] is calls[2][1]
    assert account.pending_events == ()
    assert len(await _stored_accounts(database)) == 1


@pytest.mark.asyncio
async def test_context_manager_commits_on_success(database, calls):
    async with database() as session:
        async with SQLAlchemyUnitOfWork(session, _dispatcher(calls)) as uow:
            await uow.accounts.add(Account.create("Ana", "ana@x.com"))

    assert len(calls) == 2
    assert len(await _stored_accounts(database)) == 1


@pytest.mark.asyncio
async def test_context_manager_rolls_back_on_error(database, calls):
    """An error inside the block dispatches nothing and stores nothing"""
    account = Account.create("Ana", "ana@x.com")

    with pytest.raises(RuntimeError):
        async with database() as session:
            async with SQLAlchemyUnitOfWork(session, _dispatcher(calls)) as uow:
                await uow.accounts.add(account)
                raise RuntimeError("use case failed")

    assert calls == []
    assert len(account.pending_events) == 1
    assert await _stored_accounts(database) == []
