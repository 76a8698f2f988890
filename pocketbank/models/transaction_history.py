"""
Audit record model.

The authoritative history of every balance-affecting event.
Records are append-only: they are written once and never
updated or deleted, so readers can page by id safely.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey, Text, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from pocketbank.models.base import Base
from pocketbank.models.enums import (
    HistoryType,
    HistoryStatus,
    HistoryCategory,
    EndpointType,
)


# One enum type shared by both endpoint columns
ENDPOINT_TYPE = SAEnum(EndpointType, name="endpoint_type_enum")


class TransactionHistory(Base):
    __tablename__ = "transaction_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    transaction_type: Mapped[HistoryType] = mapped_column(
        SAEnum(HistoryType, name="history_type_enum"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="INR"
    )
    status: Mapped[HistoryStatus] = mapped_column(
        SAEnum(HistoryStatus, name="history_status_enum"),
        nullable=False,
        default=HistoryStatus.SUCCESS,
    )

    source_type: Mapped[EndpointType] = mapped_column(
        ENDPOINT_TYPE, nullable=False
    )
    source_id: Mapped[int | None] = mapped_column(nullable=True)
    source_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    destination_type: Mapped[EndpointType] = mapped_column(
        ENDPOINT_TYPE, nullable=False
    )
    destination_id: Mapped[int | None] = mapped_column(nullable=True)
    destination_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_number: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False
    )
    category: Mapped[HistoryCategory] = mapped_column(
        SAEnum(HistoryCategory, name="history_category_enum"),
        nullable=False,
        default=HistoryCategory.GENERAL,
    )

    bill_id: Mapped[int | None] = mapped_column(
        ForeignKey("bills.id"), nullable=True, index=True
    )
    transfer_id: Mapped[int | None] = mapped_column(
        ForeignKey("transfers.id"), nullable=True, index=True
    )

    balance_before: Mapped[Decimal | None] = mapped_column(
        Numeric(15, 2), nullable=True
    )
    balance_after: Mapped[Decimal | None] = mapped_column(
        Numeric(15, 2), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<TransactionHistory {self.reference_number} "
            f"{self.transaction_type.value} {self.amount}>"
        )
