"""
Domain Entities - Rich business objects with identity and lifecycle.

Account is the aggregate root of this service. Its state transitions
raise domain events that stay buffered on the aggregate until the
Unit of Work commits.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from .aggregate import Aggregate
from .events import AccountCreated, AccountSuspended
from .value_objects import AccountId


class AccountStatus(str, enum.Enum):
    """Account lifecycle states"""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Account(Aggregate):
    """
    Account aggregate root.

    Invariants (business rules enforced by domain model):
    1. Name must not be blank
    2. Email must look like an address (contain '@')
    3. Only an active account can be suspended

    Use `Account.create()` for new accounts: it raises AccountCreated.
    Calling the constructor directly rehydrates an existing account from
    storage and raises nothing.
    """

    def __init__(
        self,
        id: AccountId,
        name: str,
        email: str,
        status: AccountStatus = AccountStatus.ACTIVE,
        created_at: Optional[datetime] = None,
        suspension_reason: Optional[str] = None,
    ):
        super().__init__(id)

        name = (name or "").strip()
        email = (email or "").strip()
        if not name:
            raise InvalidAccountError("Account name cannot be empty")
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise InvalidAccountError(f"Invalid email address: {email!r}")

        self.name = name
        self.email = email
        self.status = AccountStatus(status)
        self.created_at = created_at or datetime.now(timezone.utc)
        self.suspension_reason = suspension_reason

    @classmethod
    def create(cls, name: str, email: str) -> "Account":
        """
        Create a new account with a fresh identifier.

        Raises:
            InvalidAccountError: If name or email violates business rules
        """
        account = cls(AccountId.new(), name, email)
        account._raise_event(
            AccountCreated(account_id=account.id, name=account.name, email=account.email)
        )
        return account

    def suspend(self, reason: str) -> None:
        """
        Suspend an active account.

        Raises:
            AccountAlreadySuspendedError: If the account is already suspended
            InvalidAccountError: If no reason is given
        """
        if self.is_suspended:
            raise AccountAlreadySuspendedError(self.id)

        reason = (reason or "").strip()
        if not reason:
            raise InvalidAccountError("Suspension reason cannot be empty")

        self.status = AccountStatus.SUSPENDED
        self.suspension_reason = reason
        self._raise_event(
            AccountSuspended(account_id=self.id, email=self.email, reason=reason)
        )

    @property
    def is_suspended(self) -> bool:
        return self.status == AccountStatus.SUSPENDED

    def __repr__(self) -> str:
        return (
            f"Account(id={self.id}, status={self.status.value}, "
            f"pending_events={len(self.pending_events)})"
        )


# Domain exceptions

class DomainError(Exception):
    """Base exception for domain layer errors"""
    pass


class InvalidAccountError(DomainError):
    """Raised when account data violates business rules"""
    pass


class AccountNotFoundError(DomainError):
    """Raised when account doesn't exist"""

    def __init__(self, account_id: AccountId):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class AccountAlreadySuspendedError(DomainError):
    """Raised when suspending an account that is already suspended"""

    def __init__(self, account_id: AccountId):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is already suspended")
