"""
Linked bank account API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.services.account_service import AccountService
from pocketbank.schemas.account import (
    AccountClosed,
    AccountMovementResult,
    AccountOpen,
    AccountResponse,
    AmountRequest,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """The caller's accounts, primary first."""
    return AccountService(db).list_accounts(user_id)


@router.post("", response_model=AccountResponse, status_code=201)
def open_account(
    request: AccountOpen,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Link a new bank account.

    The first account a user links becomes their primary account.
    """
    service = AccountService(db)
    try:
        return service.open_account(user_id, request)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/{account_id}/primary", response_model=AccountResponse)
def set_primary(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.set_primary(user_id, account_id)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.delete("/{account_id}", response_model=AccountClosed)
def close_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.close_account(user_id, account_id)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/{account_id}/deposit", response_model=AccountMovementResult)
def deposit(
    account_id: int,
    request: AmountRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.deposit(user_id, account_id, request.amount)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/{account_id}/withdraw", response_model=AccountMovementResult)
def withdraw(
    account_id: int,
    request: AmountRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.withdraw(user_id, account_id, request.amount)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
