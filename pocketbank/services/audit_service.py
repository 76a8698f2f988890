"""
Audit logger for transaction_history.

log_transaction() appends one immutable record and fails loudly.
The named helpers below it are fixed mappings from one movement
kind to the generic AuditEntry shape, so descriptions and
categories are always phrased the same way.

Helpers write through record(). With best_effort=True (the
default used by the money-moving services) a failed audit write
is rolled back to a savepoint and logged, and the balance change
it describes still commits. Audit is observability, not a second
consistency guarantee.
"""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketbank.config import get_settings
from pocketbank.logging_config import get_logger
from pocketbank.models.enums import (
    EndpointType,
    HistoryCategory,
    HistoryType,
)
from pocketbank.models.transaction_history import TransactionHistory
from pocketbank.money import format_amount
from pocketbank.schemas.history import AuditEntry, Endpoint
from pocketbank.services.references import history_reference

logger = get_logger("pocketbank.audit")

MY_WALLET = "My Wallet"


def _with_note(text: str, note: str | None) -> str:
    return f"{text}: {note}" if note else text


class AuditLogger:

    def __init__(self, db: Session, best_effort: bool = True):
        self.db = db
        self.best_effort = best_effort

    def log_transaction(self, entry: AuditEntry) -> TransactionHistory:
        """
        Append one audit record.

        Generates a fresh reference number, separate from any
        transfer reference. Never updates an existing record.
        """
        record = TransactionHistory(
            user_id=entry.user_id,
            transaction_type=entry.transaction_type,
            amount=entry.amount,
            currency=get_settings().CURRENCY,
            status=entry.status,
            source_type=entry.source.type,
            source_id=entry.source.id,
            source_name=entry.source.name,
            destination_type=entry.destination.type,
            destination_id=entry.destination.id,
            destination_name=entry.destination.name,
            description=entry.description,
            reference_number=history_reference(),
            category=entry.category,
            bill_id=entry.bill_id,
            transfer_id=entry.transfer_id,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
        )
        self.db.add(record)
        self.db.flush()

        logger.info(
            "Transaction logged: %s - %s %s - %s",
            entry.transaction_type.value,
            entry.amount,
            record.currency,
            record.reference_number,
        )
        return record

    def record(self, entry: AuditEntry) -> TransactionHistory | None:
        """Write an entry, swallowing database failures when best-effort."""
        if not self.best_effort:
            return self.log_transaction(entry)
        try:
            with self.db.begin_nested():
                return self.log_transaction(entry)
        except SQLAlchemyError:
            logger.exception(
                "Error logging %s of %s for user %s",
                entry.transaction_type.value,
                entry.amount,
                entry.user_id,
            )
            return None

    # --- Wallet funding and wallet <-> account moves ---

    def log_wallet_fund(
        self, user_id: int, amount: Decimal, account_name: str,
        balance_before: Decimal, balance_after: Decimal,
        account_id: int | None = None,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.WALLET_FUND,
            amount=amount,
            source=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            destination=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            description=f"Added {format_amount(amount)} to wallet from {account_name}",
            category=HistoryCategory.WALLET_MANAGEMENT,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_wallet_to_account(
        self, user_id: int, amount: Decimal, account_name: str, account_id: int,
        wallet_before: Decimal, wallet_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.WALLET_TO_ACCOUNT,
            amount=amount,
            source=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            destination=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            description=f"Transferred {format_amount(amount)} from wallet to {account_name}",
            category=HistoryCategory.TRANSFER,
            balance_before=wallet_before,
            balance_after=wallet_after,
        ))

    def log_account_to_wallet(
        self, user_id: int, amount: Decimal, account_name: str, account_id: int,
        account_before: Decimal, account_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.ACCOUNT_TO_WALLET,
            amount=amount,
            source=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            destination=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            description=f"Transferred {format_amount(amount)} from {account_name} to wallet",
            category=HistoryCategory.TRANSFER,
            balance_before=account_before,
            balance_after=account_after,
        ))

    # --- Peer transfers ---

    def log_wallet_transfer_sent(
        self, user_id: int, amount: Decimal, recipient_name: str,
        recipient_id: int, transfer_id: int | None,
        balance_before: Decimal, balance_after: Decimal,
        note: str | None = None,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.WALLET_TRANSFER,
            amount=amount,
            source=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            destination=Endpoint(type=EndpointType.USER, id=recipient_id, name=recipient_name),
            description=_with_note(f"Sent {format_amount(amount)} to {recipient_name}", note),
            category=HistoryCategory.TRANSFER,
            transfer_id=transfer_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_wallet_transfer_received(
        self, user_id: int, amount: Decimal, sender_name: str,
        sender_id: int, transfer_id: int | None,
        balance_before: Decimal, balance_after: Decimal,
        note: str | None = None,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.WALLET_TRANSFER,
            amount=amount,
            source=Endpoint(type=EndpointType.USER, id=sender_id, name=sender_name),
            destination=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            description=_with_note(f"Received {format_amount(amount)} from {sender_name}", note),
            category=HistoryCategory.TRANSFER,
            transfer_id=transfer_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_account_transfer_sent(
        self, user_id: int, amount: Decimal, source: Endpoint,
        destination: Endpoint, recipient_name: str, transfer_id: int | None,
        balance_before: Decimal, balance_after: Decimal,
        note: str | None = None,
    ):
        """Sender side of a transfer funded from a bank account."""
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.ACCOUNT_TRANSFER,
            amount=amount,
            source=source,
            destination=destination,
            description=_with_note(f"Sent {format_amount(amount)} to {recipient_name}", note),
            category=HistoryCategory.TRANSFER,
            transfer_id=transfer_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_account_transfer_received(
        self, user_id: int, amount: Decimal, source: Endpoint,
        destination: Endpoint, sender_name: str, transfer_id: int | None,
        balance_before: Decimal, balance_after: Decimal,
        note: str | None = None,
    ):
        """Recipient side of a transfer that landed in a bank account."""
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.ACCOUNT_TRANSFER,
            amount=amount,
            source=source,
            destination=destination,
            description=_with_note(f"Received {format_amount(amount)} from {sender_name}", note),
            category=HistoryCategory.TRANSFER,
            transfer_id=transfer_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_self_transfer(
        self, user_id: int, amount: Decimal, source: Endpoint,
        destination: Endpoint, transfer_id: int | None,
        balance_before: Decimal, balance_after: Decimal,
        note: str | None = None,
    ):
        """One leg of a move between two of the user's own balances."""
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.SELF_TRANSFER,
            amount=amount,
            source=source,
            destination=destination,
            description=_with_note(
                f"Self Transfer: {format_amount(amount)} from {source.name} to {destination.name}",
                note,
            ),
            category=HistoryCategory.TRANSFER,
            transfer_id=transfer_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    # --- Bills ---

    def log_bill_payment_wallet(
        self, user_id: int, amount: Decimal, provider: str, bill_id: int,
        balance_before: Decimal, balance_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.BILL_PAYMENT_WALLET,
            amount=amount,
            source=Endpoint(type=EndpointType.WALLET, name=MY_WALLET),
            destination=Endpoint(type=EndpointType.BILL, id=bill_id, name=provider),
            description=f"Paid {provider} bill of {format_amount(amount)} from wallet",
            category=HistoryCategory.UTILITIES,
            bill_id=bill_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_bill_payment_bank(
        self, user_id: int, amount: Decimal, provider: str, account_name: str,
        bill_id: int, account_id: int,
        balance_before: Decimal, balance_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.BILL_PAYMENT_BANK,
            amount=amount,
            source=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            destination=Endpoint(type=EndpointType.BILL, id=bill_id, name=provider),
            description=f"Paid {provider} bill of {format_amount(amount)} from {account_name}",
            category=HistoryCategory.UTILITIES,
            bill_id=bill_id,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    # --- Account deposits and withdrawals ---

    def log_account_deposit(
        self, user_id: int, amount: Decimal, account_name: str, account_id: int,
        balance_before: Decimal, balance_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.ACCOUNT_DEPOSIT,
            amount=amount,
            source=Endpoint(type=EndpointType.EXTERNAL, name="External Deposit"),
            destination=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            description=f"Deposited {format_amount(amount)} to {account_name}",
            category=HistoryCategory.ACCOUNT_MANAGEMENT,
            balance_before=balance_before,
            balance_after=balance_after,
        ))

    def log_account_withdrawal(
        self, user_id: int, amount: Decimal, account_name: str, account_id: int,
        balance_before: Decimal, balance_after: Decimal,
    ):
        return self.record(AuditEntry(
            user_id=user_id,
            transaction_type=HistoryType.ACCOUNT_WITHDRAWAL,
            amount=amount,
            source=Endpoint(type=EndpointType.BANK_ACCOUNT, id=account_id, name=account_name),
            destination=Endpoint(type=EndpointType.EXTERNAL, name="Cash Withdrawal"),
            description=f"Withdrew {format_amount(amount)} from {account_name}",
            category=HistoryCategory.ACCOUNT_MANAGEMENT,
            balance_before=balance_before,
            balance_after=balance_after,
        ))
