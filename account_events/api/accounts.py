"""
Account API - create, read and suspend accounts.

Endpoints are a thin pass-through to AccountService; domain events and
their listeners run inside the Unit of Work commit.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
import logging

from account_events.application.account_service import AccountService
from account_events.application.dispatcher import DomainEventDispatcher
from account_events.db.connection import get_db_session
from account_events.domain.entities import (
    Account,
    AccountAlreadySuspendedError,
    AccountNotFoundError,
    InvalidAccountError,
)
from account_events.domain.unit_of_work import (
    AbstractUnitOfWork,
    ListenerInvocationFailed,
    PersistenceFailed,
    get_unit_of_work,
)
from account_events.domain.value_objects import AccountId

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Pydantic Models
# ============================================

class CreateAccountRequest(BaseModel):
    """Request to create a new account"""
    name: str = Field(..., description="Account holder name")
    email: str = Field(..., description="Account holder email address")


class CreateAccountResponse(BaseModel):
    """Identifier of the created account"""
    id: str


class SuspendAccountRequest(BaseModel):
    """Request to suspend an account"""
    reason: str = Field(..., description="Why the account is being suspended")


class AccountResponse(BaseModel):
    """Account details"""
    id: str
    name: str
    email: str
    status: str
    suspension_reason: Optional[str] = None
    created_at: datetime


def _to_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=str(account.id),
        name=account.name,
        email=account.email,
        status=account.status.value,
        suspension_reason=account.suspension_reason,
        created_at=account.created_at,
    )


# ============================================
# Dependencies
# ============================================

def get_dispatcher(request: Request) -> DomainEventDispatcher:
    """Dispatcher built once at startup (see main.lifespan)"""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise RuntimeError("Event dispatcher not initialized")
    return dispatcher


async def get_uow(
    db: AsyncSession = Depends(get_db_session),
    dispatcher: DomainEventDispatcher = Depends(get_dispatcher)
) -> AbstractUnitOfWork:
    """Request-scoped Unit of Work"""
    return get_unit_of_work(db, dispatcher)


def _parse_account_id(account_id: str) -> AccountId:
    try:
        return AccountId.parse(account_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account {account_id} not found"
        )


def _commit_failed(e: Exception) -> HTTPException:
    if isinstance(e, ListenerInvocationFailed):
        logger.error(f"❌ Commit aborted by listener: {e}")
        detail = f"Event listener failed: {e}"
    else:
        logger.error(f"❌ Commit aborted by persistence failure: {e}")
        detail = "Could not persist changes"
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


# ============================================
# Endpoints
# ============================================

@router.post("/accounts", response_model=CreateAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    request: CreateAccountRequest,
    uow: AbstractUnitOfWork = Depends(get_uow)
):
    """
    Create a new account.

    Raises AccountCreated; its listeners run before the account row is
    committed. Any listener or persistence failure returns 503 and
    nothing is stored.
    """
    try:
        account = await AccountService().create_account(uow, request.name, request.email)
    except InvalidAccountError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except (ListenerInvocationFailed, PersistenceFailed) as e:
        raise _commit_failed(e)

    return CreateAccountResponse(id=str(account.id))


@router.get("/accounts", response_model=List[AccountResponse])
async def list_accounts(uow: AbstractUnitOfWork = Depends(get_uow)):
    """List all accounts, oldest first"""
    accounts = await AccountService().list_accounts(uow)
    return [_to_response(account) for account in accounts]


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(account_id: str, uow: AbstractUnitOfWork = Depends(get_uow)):
    """Get one account"""
    try:
        account = await AccountService().get_account(uow, _parse_account_id(account_id))
    except AccountNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _to_response(account)


@router.post("/accounts/{account_id}/suspend", response_model=AccountResponse)
async def suspend_account(
    account_id: str,
    request: SuspendAccountRequest,
    uow: AbstractUnitOfWork = Depends(get_uow)
):
    """
    Suspend an account.

    Raises AccountSuspended. Returns 404 for unknown accounts and 409 if
    the account is already suspended.
    """
    try:
        account = await AccountService().suspend_account(
            uow, _parse_account_id(account_id), request.reason
        )
    except AccountNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccountAlreadySuspendedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidAccountError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except (ListenerInvocationFailed, PersistenceFailed) as e:
        raise _commit_failed(e)

    return _to_response(account)
