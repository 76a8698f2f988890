"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


transfer_source = sa.Enum("WALLET", "ACCOUNT", name="transfer_source_enum")
destination_type = sa.Enum("WALLET", "ACCOUNT", name="destination_type_enum")
payment_method = sa.Enum("Wallet", "Bank Transfer", name="payment_method_enum")
bill_status = sa.Enum("Pending", "Paid", name="bill_status_enum")
ledger_transaction_type = sa.Enum(
    "Transfer", "Self Transfer", "Bill Payment",
    name="ledger_transaction_type_enum",
)
ledger_status = sa.Enum("Success", "Failed", name="ledger_status_enum")
history_type = sa.Enum(
    "WALLET_FUND", "WALLET_TRANSFER", "BILL_PAYMENT_WALLET",
    "BILL_PAYMENT_BANK", "ACCOUNT_TRANSFER", "SELF_TRANSFER",
    "ACCOUNT_DEPOSIT", "ACCOUNT_WITHDRAWAL", "WALLET_TO_ACCOUNT",
    "ACCOUNT_TO_WALLET",
    name="history_type_enum",
)
endpoint_type = sa.Enum(
    "WALLET", "BANK_ACCOUNT", "BILL", "USER", "EXTERNAL",
    name="endpoint_type_enum",
)
history_status = sa.Enum(
    "PENDING", "SUCCESS", "FAILED", "CANCELLED", name="history_status_enum"
)
history_category = sa.Enum(
    "GENERAL", "TRANSFER", "UTILITIES", "WALLET_MANAGEMENT",
    "ACCOUNT_MANAGEMENT",
    name="history_category_enum",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=True, unique=True),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("wallet_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("account_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_non_negative"),
        sa.CheckConstraint("account_balance >= 0", name="ck_users_account_non_negative"),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("bank_name", sa.String(length=100), nullable=False),
        sa.Column("bank_type", sa.String(length=50), nullable=False),
        sa.Column("account_number", sa.String(length=34), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id"),
            nullable=False, unique=True,
        ),
        sa.Column("wallet_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("transaction_type", ledger_transaction_type, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("status", ledger_status, nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("reference_number", sa.String(length=30), nullable=False),
        sa.Column("from_account", sa.String(length=100), nullable=True),
        sa.Column("to_account", sa.String(length=100), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index(
        "ix_transactions_reference_number", "transactions", ["reference_number"]
    )

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reference", sa.String(length=20), nullable=False),
        sa.Column("from_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("to_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column("source", transfer_source, nullable=False),
        sa.Column(
            "source_account_id", sa.Integer(),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("destination_type", destination_type, nullable=False),
        sa.Column(
            "destination_account_id", sa.Integer(),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("is_self_transfer", sa.Boolean(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "from_user_id", "idempotency_key", name="uq_transfers_idempotency"
        ),
    )
    op.create_index("ix_transfers_reference", "transfers", ["reference"], unique=True)
    op.create_index("ix_transfers_from_user_id", "transfers", ["from_user_id"])
    op.create_index("ix_transfers_to_user_id", "transfers", ["to_user_id"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("provider_name", sa.String(length=100), nullable=False),
        sa.Column("bill_type", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", bill_status, nullable=False),
        sa.Column(
            "transaction_id", sa.Integer(),
            sa.ForeignKey("transactions.id"), nullable=True,
        ),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_bills_user_id", "bills", ["user_id"])

    op.create_table(
        "transaction_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("transaction_type", history_type, nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", history_status, nullable=False),
        sa.Column("source_type", endpoint_type, nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=True),
        sa.Column("source_name", sa.String(length=255), nullable=True),
        sa.Column("destination_type", endpoint_type, nullable=False),
        sa.Column("destination_id", sa.Integer(), nullable=True),
        sa.Column("destination_name", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_number", sa.String(length=100), nullable=False, unique=True),
        sa.Column("category", history_category, nullable=False),
        sa.Column("bill_id", sa.Integer(), sa.ForeignKey("bills.id"), nullable=True),
        sa.Column("transfer_id", sa.Integer(), sa.ForeignKey("transfers.id"), nullable=True),
        sa.Column("balance_before", sa.Numeric(15, 2), nullable=True),
        sa.Column("balance_after", sa.Numeric(15, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_transaction_history_user_id", "transaction_history", ["user_id"]
    )
    op.create_index(
        "ix_transaction_history_transaction_type",
        "transaction_history",
        ["transaction_type"],
    )
    op.create_index(
        "ix_transaction_history_bill_id", "transaction_history", ["bill_id"]
    )
    op.create_index(
        "ix_transaction_history_transfer_id", "transaction_history", ["transfer_id"]
    )
    op.create_index(
        "ix_transaction_history_created_at", "transaction_history", ["created_at"]
    )


def downgrade() -> None:
    op.drop_table("transaction_history")
    op.drop_table("bills")
    op.drop_table("transfers")
    op.drop_table("transactions")
    op.drop_table("wallets")
    op.drop_table("accounts")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        history_category, history_status, endpoint_type, history_type,
        ledger_status, ledger_transaction_type, bill_status,
        payment_method, destination_type, transfer_source,
    ):
        enum_type.drop(bind, checkfirst=True)
