"""
Bill model.

A bill moves from Pending to Paid exactly once. "Overdue" is
never stored; it is computed from due_date when bills are read.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketbank.models.base import Base
from pocketbank.models.enums import BillStatus, enum_values


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    provider_name: Mapped[str] = mapped_column(String(100), nullable=False)
    bill_type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BillStatus] = mapped_column(
        SAEnum(
            BillStatus,
            name="bill_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=BillStatus.PENDING,
    )
    transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    transaction: Mapped["Transaction | None"] = relationship()

    def is_overdue(self, today: date | None = None) -> bool:
        today = today or date.today()
        return self.status == BillStatus.PENDING and self.due_date < today

    def __repr__(self) -> str:
        return f"<Bill {self.id} {self.provider_name} {self.amount} ({self.status.value})>"
