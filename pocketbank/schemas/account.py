"""
Pydantic schemas for linked bank accounts.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AccountOpen(BaseModel):
    """Request to link a new bank account."""
    bank_name: str = Field(min_length=1, max_length=100)
    account_number: str = Field(min_length=4, max_length=34)
    bank_type: str = Field(default="Savings", max_length=50)
    make_primary: bool = False


class AccountResponse(BaseModel):
    id: int
    user_id: int
    bank_name: str
    bank_type: str
    account_number: str
    balance: Decimal
    is_primary: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AmountRequest(BaseModel):
    amount: Decimal


class AccountMovementResult(BaseModel):
    account_id: int
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    account_balance: Decimal


class AccountClosed(BaseModel):
    account_id: int
    promoted_account_id: int | None
