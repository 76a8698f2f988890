"""
Pydantic schemas for the per-user transactions ledger.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from pocketbank.models.enums import LedgerStatus, LedgerTransactionType, PaymentMethod
from pocketbank.schemas.transfer import Pagination


class LedgerRowResponse(BaseModel):
    id: int
    transaction_type: LedgerTransactionType
    amount: Decimal
    payment_method: PaymentMethod
    status: LedgerStatus
    description: str
    reference_number: str
    from_account: str | None
    to_account: str | None
    transaction_date: datetime

    model_config = {"from_attributes": True}


class LedgerPage(BaseModel):
    transactions: list[LedgerRowResponse]
    pagination: Pagination
