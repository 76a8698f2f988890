"""
Transfer model.

One row per successful money movement between users (or between
two accounts of the same user). Rows are never updated or
deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey,
    Enum as SAEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketbank.models.base import Base
from pocketbank.models.enums import TransferSource, DestinationType


class Transfer(Base):
    __tablename__ = "transfers"
    __table_args__ = (
        # NULL keys never collide, so transfers without a key are unaffected
        UniqueConstraint(
            "from_user_id", "idempotency_key", name="uq_transfers_idempotency"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    reference: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    from_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    to_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source: Mapped[TransferSource] = mapped_column(
        SAEnum(TransferSource, name="transfer_source_enum"),
        nullable=False,
    )
    source_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    destination_type: Mapped[DestinationType] = mapped_column(
        SAEnum(DestinationType, name="destination_type_enum"),
        nullable=False,
    )
    destination_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    is_self_transfer: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    sender: Mapped["User"] = relationship(foreign_keys=[from_user_id])
    recipient: Mapped["User"] = relationship(foreign_keys=[to_user_id])
    destination_account: Mapped["Account | None"] = relationship(
        foreign_keys=[destination_account_id]
    )

    def __repr__(self) -> str:
        return f"<Transfer {self.reference} {self.amount}>"
