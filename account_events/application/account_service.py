"""
Account Service - use cases for account operations.

Each use case mutates an Account aggregate and commits the Unit of
Work. Events raised by the aggregate are dispatched by that commit.
"""

import logging
from typing import List

from account_events.domain.entities import Account, AccountNotFoundError
from account_events.domain.unit_of_work import AbstractUnitOfWork
from account_events.domain.value_objects import AccountId

logger = logging.getLogger(__name__)


class AccountService:
    """
    Application service for account operations.

    All write operations go through the Unit of Work, which dispatches
    domain events before persisting.
    """

    async def create_account(self, uow: AbstractUnitOfWork, name: str, email: str) -> Account:
        """
        Create an account and commit it.

        Raises:
            InvalidAccountError: If name or email is invalid
            ListenerInvocationFailed: If a listener failed (nothing persisted)
            PersistenceFailed: If the account could not be saved
        """
        logger.info(f"Creating account for {email}")
        account = Account.create(name, email)
        await uow.accounts.add(account)
        await uow.commit()
        logger.info(f"Created account for {email} - transaction committed")
        return account

    async def suspend_account(
        self,
        uow: AbstractUnitOfWork,
        account_id: AccountId,
        reason: str
    ) -> Account:
        """
        Suspend an existing account and commit.

        Raises:
            AccountNotFoundError: If the account doesn't exist
            AccountAlreadySuspendedError: If it is already suspended
        """
        account = await uow.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        account.suspend(reason)
        await uow.commit()
        logger.info(f"Suspended account {account_id}")
        return account

    async def get_account(self, uow: AbstractUnitOfWork, account_id: AccountId) -> Account:
        account = await uow.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def list_accounts(self, uow: AbstractUnitOfWork) -> List[Account]:
        return await uow.accounts.list_all()
