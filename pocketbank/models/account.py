"""
Linked bank account model.

Each account belongs to exactly one user. At most one account
per user is primary; the account service enforces that, the
database does not.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketbank.models.base import Base


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)
    bank_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Savings"
    )
    account_number: Mapped[str] = mapped_column(String(34), nullable=False)
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    is_primary: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship(back_populates="accounts")

    @property
    def masked_number(self) -> str:
        return f"****{self.account_number[-4:]}"

    @property
    def ledger_label(self) -> str:
        """How the account is named in the from/to columns of ledger rows."""
        return f"{self.bank_name} {self.masked_number}"

    def __repr__(self) -> str:
        flag = " primary" if self.is_primary else ""
        return f"<Account {self.id} {self.bank_name}{flag}>"
