"""
SQLAlchemy ORM models for database tables.

Rows are kept separate from domain aggregates: the repository maps
between AccountModel and the Account aggregate, so pending events never
reach the database.
"""
from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AccountModel(Base):
    """
    Accounts table - one row per Account aggregate.
    """
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)  # AccountId (UUID string)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # 'active' or 'suspended'
    suspension_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index('idx_accounts_email', 'email'),
        Index('idx_accounts_created_at', 'created_at'),
    )
