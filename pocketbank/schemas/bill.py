"""
Pydantic schemas for bills and bill payment.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from pocketbank.models.enums import BillStatus, PaymentMethod


class BillCreate(BaseModel):
    provider_name: str = Field(min_length=1, max_length=100)
    bill_type: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(gt=0, decimal_places=2)
    due_date: date


class BillResponse(BaseModel):
    id: int
    user_id: int
    provider_name: str
    bill_type: str
    amount: Decimal
    due_date: date
    status: BillStatus
    transaction_id: int | None
    paid_at: datetime | None
    created_at: datetime
    # Computed on read; never stored
    computed_status: str
    days_until_due: int


class BillStatistics(BaseModel):
    total_bills: int
    pending_bills: int
    paid_bills: int
    overdue_bills: int
    pending_amount: Decimal
    paid_amount: Decimal
    average_bill_amount: Decimal


class BillListResponse(BaseModel):
    bills: list[BillResponse]
    statistics: BillStatistics


class BillPayRequest(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.WALLET
    account_id: int | None = None
    notes: str | None = Field(default=None, max_length=255)

    @field_validator("payment_method", mode="before")
    @classmethod
    def accept_shorthand(cls, value):
        """Accept "wallet" and "bank" alongside the full names."""
        if isinstance(value, str):
            try:
                return PaymentMethod(value)
            except ValueError:
                return value
        return value


class BillPaymentResult(BaseModel):
    bill_id: int
    transaction_id: int
    reference_number: str
    amount_paid: Decimal
    payment_method: PaymentMethod
    account_id: int | None
    updated_wallet_balance: Decimal
    updated_account_balance: Decimal | None
