"""
Per-user transactions ledger.

The simple, older history listing. A peer transfer writes one
row for the sender and one for the recipient; a self transfer
or a bill payment writes a single row.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from pocketbank.models.base import Base
from pocketbank.models.enums import (
    LedgerTransactionType,
    LedgerStatus,
    PaymentMethod,
    enum_values,
)

# from_account / to_account value for the wallet side of a movement
WALLET_LABEL = "Wallet"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    transaction_type: Mapped[LedgerTransactionType] = mapped_column(
        SAEnum(
            LedgerTransactionType,
            name="ledger_transaction_type_enum",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            name="payment_method_enum",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    status: Mapped[LedgerStatus] = mapped_column(
        SAEnum(
            LedgerStatus,
            name="ledger_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=LedgerStatus.SUCCESS,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reference_number: Mapped[str] = mapped_column(
        String(30), nullable=False, index=True
    )
    from_account: Mapped[str | None] = mapped_column(String(120), nullable=True)
    to_account: Mapped[str | None] = mapped_column(String(120), nullable=True)
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.transaction_type.value} "
            f"{self.amount} ({self.status.value})>"
        )
