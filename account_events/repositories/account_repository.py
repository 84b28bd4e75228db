"""
Account repository for data access.

Maps between the Account aggregate and AccountModel rows, and keeps the
change set the Unit of Work drains on commit: every account added or
loaded through the repository is tracked.
"""

from typing import Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from account_events.core.interfaces import IAccountRepository
from account_events.db.models import AccountModel
from account_events.domain.entities import Account, AccountStatus
from account_events.domain.value_objects import AccountId


class AccountRepository(IAccountRepository):
    """Repository for Account aggregate"""

    def __init__(self, session: AsyncSession):
        self._db = session
        self._seen: Dict[AccountId, Account] = {}

    @property
    def seen(self) -> List[Account]:
        return list(self._seen.values())

    async def add(self, account: Account) -> None:
        """Track a new account; the row is written on commit"""
        self._seen[account.id] = account

    async def get(self, account_id: AccountId) -> Optional[Account]:
        """Get account by ID (returns the tracked instance if already loaded)"""
        if account_id in self._seen:
            return self._seen[account_id]

        row = await self._db.get(AccountModel, str(account_id))
        if row is None:
            return None

        account = _to_domain(row)
        self._seen[account.id] = account
        return account

    async def list_all(self) -> List[Account]:
        result = await self._db.execute(
            select(AccountModel).order_by(AccountModel.created_at)
        )
        return [_to_domain(row) for row in result.scalars().all()]

    async def stage_changes(self) -> None:
        """Copy the state of every tracked account onto its row"""
        for account in self._seen.values():
            await self._db.merge(_to_model(account))


def _to_domain(row: AccountModel) -> Account:
    return Account(
        id=AccountId.parse(row.id),
        name=row.name,
        email=row.email,
        status=AccountStatus(row.status),
        created_at=row.created_at,
        suspension_reason=row.suspension_reason,
    )


def _to_model(account: Account) -> AccountModel:
    return AccountModel(
        id=str(account.id),
        name=account.name,
        email=account.email,
        status=account.status.value,
        suspension_reason=account.suspension_reason,
        created_at=account.created_at,
    )
