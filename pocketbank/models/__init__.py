"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from pocketbank.models.base import Base
from pocketbank.models.enums import (
    TransferSource,
    DestinationType,
    PaymentMethod,
    BillStatus,
    LedgerTransactionType,
    LedgerStatus,
    HistoryType,
    EndpointType,
    HistoryStatus,
    HistoryCategory,
)
from pocketbank.models.user import User
from pocketbank.models.account import Account
from pocketbank.models.wallet import Wallet
from pocketbank.models.transfer import Transfer
from pocketbank.models.transaction import Transaction
from pocketbank.models.bill import Bill
from pocketbank.models.transaction_history import TransactionHistory

__all__ = [
    "Base",
    "TransferSource",
    "DestinationType",
    "PaymentMethod",
    "BillStatus",
    "LedgerTransactionType",
    "LedgerStatus",
    "HistoryType",
    "EndpointType",
    "HistoryStatus",
    "HistoryCategory",
    "User",
    "Account",
    "Wallet",
    "Transfer",
    "Transaction",
    "Bill",
    "TransactionHistory",
]
