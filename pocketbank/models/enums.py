"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class TransferSource(str, enum.Enum):
    """Which balance funds a transfer."""
    WALLET = "wallet"
    ACCOUNT = "account"


class DestinationType(str, enum.Enum):
    """Which balance a transfer lands in."""
    WALLET = "wallet"
    ACCOUNT = "account"


class PaymentMethod(str, enum.Enum):
    """How a bill (or a ledger row) was paid."""
    WALLET = "Wallet"
    BANK_TRANSFER = "Bank Transfer"

    @classmethod
    def _missing_(cls, value):
        # Older clients send lowercase shorthands
        if isinstance(value, str):
            return {
                "wallet": cls.WALLET,
                "bank": cls.BANK_TRANSFER,
                "bank transfer": cls.BANK_TRANSFER,
            }.get(value.strip().lower())
        return None


class BillStatus(str, enum.Enum):
    """Pending -> Paid. Paid is terminal; Overdue is computed, never stored."""
    PENDING = "Pending"
    PAID = "Paid"


class LedgerTransactionType(str, enum.Enum):
    """Kinds of rows in the per-user transactions ledger."""
    TRANSFER = "Transfer"
    SELF_TRANSFER = "Self Transfer"
    BILL_PAYMENT = "Bill Payment"


class LedgerStatus(str, enum.Enum):
    SUCCESS = "Success"
    FAILED = "Failed"


class HistoryType(str, enum.Enum):
    """Movement kinds recorded in transaction_history."""
    WALLET_FUND = "WALLET_FUND"
    WALLET_TRANSFER = "WALLET_TRANSFER"
    BILL_PAYMENT_WALLET = "BILL_PAYMENT_WALLET"
    BILL_PAYMENT_BANK = "BILL_PAYMENT_BANK"
    ACCOUNT_TRANSFER = "ACCOUNT_TRANSFER"
    SELF_TRANSFER = "SELF_TRANSFER"
    ACCOUNT_DEPOSIT = "ACCOUNT_DEPOSIT"
    ACCOUNT_WITHDRAWAL = "ACCOUNT_WITHDRAWAL"
    WALLET_TO_ACCOUNT = "WALLET_TO_ACCOUNT"
    ACCOUNT_TO_WALLET = "ACCOUNT_TO_WALLET"


class EndpointType(str, enum.Enum):
    """What sits at either end of an audited movement."""
    WALLET = "WALLET"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    BILL = "BILL"
    USER = "USER"
    EXTERNAL = "EXTERNAL"


class HistoryStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class HistoryCategory(str, enum.Enum):
    GENERAL = "GENERAL"
    TRANSFER = "TRANSFER"
    UTILITIES = "UTILITIES"
    WALLET_MANAGEMENT = "WALLET_MANAGEMENT"
    ACCOUNT_MANAGEMENT = "ACCOUNT_MANAGEMENT"


def enum_values(enum_cls) -> list[str]:
    """Store enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
