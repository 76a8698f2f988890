"""
Transactions ledger API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.services.history_service import HistoryService
from pocketbank.schemas.transaction import LedgerPage

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=LedgerPage)
def list_transactions(
    account_id: int | None = None,
    limit: int = Query(default=20, gt=0, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    The caller's ledger rows, newest first.

    Pass account_id to see only rows that moved money in or out
    of that account.
    """
    service = HistoryService(db)
    try:
        return service.list_ledger(user_id, account_id, limit, offset)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
