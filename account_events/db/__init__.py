"""Database package - all database-related code."""
from account_events.db.connection import init_db, get_db_session, close_db
from account_events.db.models import Base, AccountModel

__all__ = [
    "init_db",
    "get_db_session",
    "close_db",
    "Base",
    "AccountModel",
]
