"""
Bill service: bill bookkeeping and settlement.

pay_bill() follows the same pattern as a transfer, with one leg:
1. Lock the bill (must still be Pending)
2. Lock the payer, then the paying account if paying by bank
3. Debit the wallet or the account, guarded
4. Write the ledger row and mark the bill Paid, pointing at it
5. Write the audit record
All in one database transaction.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pocketbank.errors import InvalidRequest, NotFound, InsufficientFunds
from pocketbank.logging_config import get_logger
from pocketbank.models.bill import Bill
from pocketbank.models.enums import (
    BillStatus,
    LedgerStatus,
    LedgerTransactionType,
    PaymentMethod,
)
from pocketbank.models.transaction import Transaction, WALLET_LABEL
from pocketbank.money import CENT, format_amount
from pocketbank.schemas.bill import (
    BillCreate,
    BillListResponse,
    BillPaymentResult,
    BillResponse,
    BillStatistics,
)
from pocketbank.services.account_locator import AccountLocator
from pocketbank.services.audit_service import AuditLogger
from pocketbank.services.balance_service import BalanceService
from pocketbank.services.references import payment_reference
from pocketbank.services.unit_of_work import atomic

logger = get_logger("pocketbank.bills")

OVERDUE = "Overdue"


class BillService:

    def __init__(
        self,
        db: Session,
        balances: BalanceService | None = None,
        audit: AuditLogger | None = None,
    ):
        self.db = db
        self.locator = AccountLocator(db)
        self.balances = balances or BalanceService(db)
        self.audit = audit or AuditLogger(db)

    def create_bill(self, user_id: int, request: BillCreate) -> Bill:
        bill = Bill(
            user_id=user_id,
            provider_name=request.provider_name.strip(),
            bill_type=request.bill_type.strip(),
            amount=request.amount,
            due_date=request.due_date,
            status=BillStatus.PENDING,
        )
        with atomic(self.db, "Create bill"):
            self.db.add(bill)
            self.db.flush()

        self.db.refresh(bill)
        logger.info(
            "Created bill %s for user %s: %s %s due %s",
            bill.id, user_id, bill.provider_name, bill.amount, bill.due_date,
        )
        return bill

    def list_bills(self, user_id: int, today: date | None = None) -> BillListResponse:
        """All of a user's bills with derived Overdue status and statistics."""
        today = today or date.today()
        bills = self.db.execute(
            select(Bill)
            .where(Bill.user_id == user_id)
            .order_by(Bill.due_date, Bill.id)
        ).scalars().all()

        items = [self.describe(bill, today) for bill in bills]

        pending = [b for b in bills if b.status == BillStatus.PENDING]
        paid = [b for b in bills if b.status == BillStatus.PAID]
        total_amount = sum((b.amount for b in bills), Decimal("0"))
        average = total_amount / len(bills) if bills else Decimal("0")

        statistics = BillStatistics(
            total_bills=len(bills),
            pending_bills=len(pending),
            paid_bills=len(paid),
            overdue_bills=sum(1 for b in bills if b.is_overdue(today)),
            pending_amount=sum((b.amount for b in pending), Decimal("0")).quantize(CENT),
            paid_amount=sum((b.amount for b in paid), Decimal("0")).quantize(CENT),
            average_bill_amount=average.quantize(CENT),
        )
        return BillListResponse(bills=items, statistics=statistics)

    def delete_bill(self, user_id: int, bill_id: int) -> None:
        """Delete a bill. Paid bills are part of the record and stay."""
        with atomic(self.db, "Delete bill"):
            # Locked so a payment in flight cannot turn it Paid under us
            bill = self._lock_pending_bill(
                user_id, bill_id, "Bill not found or cannot be deleted"
            )
            self.db.delete(bill)

        logger.info("Deleted bill %s for user %s", bill_id, user_id)

    # --- Settlement ---

    def pay_bill(
        self,
        user_id: int,
        bill_id: int,
        payment_method: PaymentMethod | str = PaymentMethod.WALLET,
        account_id: int | None = None,
        notes: str | None = None,
    ) -> BillPaymentResult:
        """
        Pay a pending bill from the wallet or from one bank account.

        Raises NotFound if the bill is missing, not the user's, or
        already paid; InsufficientFunds if the chosen balance is
        short. Either way the bill stays Pending and nothing is
        written.
        """
        try:
            payment_method = PaymentMethod(payment_method)
        except ValueError:
            raise InvalidRequest(
                'Payment method must be either "Wallet" or "Bank Transfer"'
            )
        if payment_method == PaymentMethod.BANK_TRANSFER and not account_id:
            raise InvalidRequest(
                "Account ID is required for bank transfer payments"
            )
        notes = notes.strip() if notes and notes.strip() else None

        with atomic(self.db, "Bill payment"):
            bill = self._lock_pending_bill(user_id, bill_id)
            user = self.locator.lock_user(user_id)
            if user is None:
                raise NotFound("User not found")
            amount = bill.amount

            account = None
            if payment_method == PaymentMethod.WALLET:
                before = user.wallet_balance
                if before < amount:
                    raise InsufficientFunds(
                        f"Insufficient wallet balance. "
                        f"Available: {format_amount(before)}, "
                        f"Required: {format_amount(amount)}",
                        before,
                    )
                self.balances.apply_wallet_delta(user_id, -amount)
            else:
                account = self.locator.lock_account(account_id, user_id)
                if account is None:
                    raise NotFound("Account not found or does not belong to you")
                before = account.balance
                if before < amount:
                    raise InsufficientFunds(
                        f"Insufficient account balance. "
                        f"Available: {format_amount(before)}, "
                        f"Required: {format_amount(amount)}",
                        before,
                    )
                self.balances.apply_account_delta(user_id, account.id, -amount)
            after = before - amount

            description = f"{bill.bill_type} bill payment to {bill.provider_name}"
            if notes:
                description = f"{description}: {notes}"
            ledger_row = Transaction(
                user_id=user_id,
                transaction_type=LedgerTransactionType.BILL_PAYMENT,
                amount=amount,
                payment_method=payment_method,
                status=LedgerStatus.SUCCESS,
                description=description,
                reference_number=payment_reference(),
                from_account=account.ledger_label if account else WALLET_LABEL,
                to_account=bill.provider_name,
            )
            self.db.add(ledger_row)
            self.db.flush()

            bill.status = BillStatus.PAID
            bill.transaction_id = ledger_row.id
            bill.paid_at = datetime.utcnow()
            self.db.flush()

            if account is None:
                self.audit.log_bill_payment_wallet(
                    user_id, amount, bill.provider_name, bill.id, before, after
                )
            else:
                self.audit.log_bill_payment_bank(
                    user_id, amount, bill.provider_name, account.bank_name,
                    bill.id, account.id, before, after,
                )

            result = BillPaymentResult(
                bill_id=bill.id,
                transaction_id=ledger_row.id,
                reference_number=ledger_row.reference_number,
                amount_paid=amount,
                payment_method=payment_method,
                account_id=account.id if account else None,
                updated_wallet_balance=self.balances.wallet_balance(user_id),
                updated_account_balance=(
                    self.balances.account_balance(account.id, user_id)
                    if account else None
                ),
            )

        logger.info(
            "Bill %s paid by user %s: %s via %s (%s)",
            bill_id, user_id, amount, payment_method.value,
            result.reference_number,
        )
        return result

    def _lock_pending_bill(
        self, user_id: int, bill_id: int,
        missing_message: str = "Bill not found or already paid",
    ) -> Bill:
        bill = self.db.execute(
            select(Bill)
            .where(
                Bill.id == bill_id,
                Bill.user_id == user_id,
                Bill.status == BillStatus.PENDING,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if bill is None:
            raise NotFound(missing_message)
        return bill

    @staticmethod
    def describe(bill: Bill, today: date | None = None) -> BillResponse:
        """A bill as callers see it, with the derived fields filled in."""
        today = today or date.today()
        return BillResponse(
            id=bill.id,
            user_id=bill.user_id,
            provider_name=bill.provider_name,
            bill_type=bill.bill_type,
            amount=bill.amount,
            due_date=bill.due_date,
            status=bill.status,
            transaction_id=bill.transaction_id,
            paid_at=bill.paid_at,
            created_at=bill.created_at,
            computed_status=OVERDUE if bill.is_overdue(today) else bill.status.value,
            days_until_due=(bill.due_date - today).days,
        )
