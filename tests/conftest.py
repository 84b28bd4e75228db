"""
Pytest configuration and shared fixtures.
"""
import pytest
import pytest_asyncio

from account_events.db import connection
from account_events.db.connection import init_db, close_db


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """
    Fresh SQLite file database for each test.

    Yields the session factory bound to it.
    """
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    yield connection.async_session_maker

    await close_db()


@pytest.fixture
def calls():
    """Shared log of (listener name, event) invocations"""
    return []
