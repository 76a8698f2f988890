"""
Wallet API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.services.wallet_service import WalletService
from pocketbank.schemas.wallet import (
    BalancesResponse,
    WalletMoveRequest,
    WalletMoveResult,
)

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/balances", response_model=BalancesResponse)
def get_balances(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = WalletService(db)
    try:
        return service.get_balances(user_id)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/to-account", response_model=WalletMoveResult)
def move_to_account(
    request: WalletMoveRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Move money from the wallet into one of the caller's accounts."""
    service = WalletService(db)
    try:
        return service.move_to_account(user_id, request.account_id, request.amount)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/from-account", response_model=WalletMoveResult)
def add_from_account(
    request: WalletMoveRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Top up the wallet from one of the caller's accounts."""
    service = WalletService(db)
    try:
        return service.add_from_account(user_id, request.account_id, request.amount)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
