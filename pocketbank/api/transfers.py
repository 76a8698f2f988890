"""
Transfer API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.models.enums import TransferSource
from pocketbank.services.history_service import HistoryService
from pocketbank.services.transfer_service import TransferService
from pocketbank.schemas.transfer import (
    FindUserResponse,
    SelfTransferRequest,
    TransferHistoryPage,
    TransferRequest,
    TransferResult,
)

router = APIRouter(prefix="/transfers", tags=["Transfers"])


@router.post("", response_model=TransferResult, status_code=201)
def send_money(
    request: TransferRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Send money to another user.

    The money lands in the recipient's primary bank account if
    they have one, otherwise in their wallet.
    """
    service = TransferService(db)
    try:
        return service.execute_transfer(
            from_user_id=user_id,
            to_user_id=request.to_user_id,
            amount=request.amount,
            source=request.source,
            note=request.note,
            idempotency_key=request.idempotency_key,
        )
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/self", response_model=TransferResult, status_code=201)
def self_transfer(
    request: SelfTransferRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Move money between two of the caller's own bank accounts."""
    service = TransferService(db)
    try:
        return service.execute_transfer(
            from_user_id=user_id,
            to_user_id=user_id,
            amount=request.amount,
            source=TransferSource.ACCOUNT,
            note=request.note,
            is_self_transfer=True,
            from_account_id=request.from_account_id,
            to_account_id=request.to_account_id,
            idempotency_key=request.idempotency_key,
        )
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.get("", response_model=TransferHistoryPage)
def transfer_history(
    limit: int = Query(default=20, gt=0, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Transfers the caller sent or received, newest first."""
    return HistoryService(db).list_transfers(user_id, limit=limit, offset=offset)


@router.get("/find-user", response_model=FindUserResponse)
def find_user(
    identifier: str = Query(max_length=255),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Look up a recipient by email, username, or full name."""
    service = TransferService(db)
    try:
        return service.find_user(user_id, identifier)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
