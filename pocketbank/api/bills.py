"""
Bill API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.services.bill_service import BillService
from pocketbank.schemas.bill import (
    BillCreate,
    BillListResponse,
    BillPaymentResult,
    BillPayRequest,
    BillResponse,
)

router = APIRouter(prefix="/bills", tags=["Bills"])


@router.get("", response_model=BillListResponse)
def list_bills(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    All of the caller's bills, with statistics.

    Pending bills past their due date are reported as Overdue
    but stay Pending in the database.
    """
    return BillService(db).list_bills(user_id)


@router.post("", response_model=BillResponse, status_code=201)
def create_bill(
    request: BillCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = BillService(db)
    try:
        return service.describe(service.create_bill(user_id, request))
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.post("/{bill_id}/pay", response_model=BillPaymentResult)
def pay_bill(
    bill_id: int,
    request: BillPayRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Pay a pending bill from the wallet or from a bank account."""
    service = BillService(db)
    try:
        return service.pay_bill(
            user_id,
            bill_id,
            payment_method=request.payment_method,
            account_id=request.account_id,
            notes=request.notes,
        )
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)


@router.delete("/{bill_id}", status_code=204)
def delete_bill(
    bill_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete an unpaid bill."""
    service = BillService(db)
    try:
        service.delete_bill(user_id, bill_id)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
