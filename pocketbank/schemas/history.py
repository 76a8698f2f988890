"""
Schemas for audit (transaction_history) records.

AuditEntry is the fixed shape every movement kind is written
in. The named helpers on AuditLogger are the only places that
fill it in, so each kind always gets the same wording and
category.
"""

import enum
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from pocketbank.models.enums import (
    EndpointType,
    HistoryCategory,
    HistoryStatus,
    HistoryType,
)
from pocketbank.schemas.transfer import Pagination


class Endpoint(BaseModel):
    """One end of a movement: a wallet, an account, a bill, a user..."""
    type: EndpointType
    id: int | None = None
    name: str | None = None


class AuditEntry(BaseModel):
    user_id: int
    transaction_type: HistoryType
    amount: Decimal = Field(gt=0)
    source: Endpoint
    destination: Endpoint
    description: str
    category: HistoryCategory = HistoryCategory.GENERAL
    bill_id: int | None = None
    transfer_id: int | None = None
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None
    status: HistoryStatus = HistoryStatus.SUCCESS


class HistoryRecordResponse(BaseModel):
    id: int
    user_id: int
    transaction_type: HistoryType
    amount: Decimal
    currency: str
    status: HistoryStatus
    source_type: EndpointType
    source_id: int | None
    source_name: str | None
    destination_type: EndpointType
    destination_id: int | None
    destination_name: str | None
    description: str | None
    reference_number: str
    category: HistoryCategory
    bill_id: int | None
    transfer_id: int | None
    balance_before: Decimal | None
    balance_after: Decimal | None
    created_at: datetime

    model_config = {"from_attributes": True}


class HistoryFilter(BaseModel):
    limit: int = Field(default=20, gt=0, le=100)
    offset: int = Field(default=0, ge=0)
    transaction_type: HistoryType | None = None
    category: HistoryCategory | None = None
    status: HistoryStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = Field(default=None, max_length=100)


class HistoryPage(BaseModel):
    records: list[HistoryRecordResponse]
    pagination: Pagination


class StatisticsPeriod(str, enum.Enum):
    """How far back statistics look."""
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"
    ALL = "all"

    @property
    def days(self) -> int | None:
        return {"7d": 7, "30d": 30, "90d": 90, "1y": 365}.get(self.value)


class OverallStatistics(BaseModel):
    total_transactions: int
    total_amount: Decimal
    avg_transaction_amount: Decimal
    successful: int
    failed: int
    pending: int
    success_rate: Decimal


class TypeBreakdown(BaseModel):
    transaction_type: HistoryType
    count: int
    total_amount: Decimal


class CategoryBreakdown(BaseModel):
    category: HistoryCategory
    count: int
    total_amount: Decimal


class MonthlyTotal(BaseModel):
    month: str  # YYYY-MM
    transaction_count: int
    total_amount: Decimal


class HistoryStatistics(BaseModel):
    """
    Totals over the caller's successful audit records.

    Counts in overall cover every status so the success rate
    means something; amounts only ever include SUCCESS records.
    """
    period: StatisticsPeriod
    overall: OverallStatistics
    by_type: list[TypeBreakdown]
    by_category: list[CategoryBreakdown]
    monthly_trend: list[MonthlyTotal]
