"""
Account service: linked bank accounts and their lifecycle.

Owns the "exactly one primary account per user" rule: the
first account a user links becomes primary, setting a new
primary clears the old one, and closing the primary promotes
the oldest remaining account.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from pocketbank.errors import InvalidRequest, NotFound, InsufficientFunds
from pocketbank.logging_config import get_logger
from pocketbank.models.account import Account
from pocketbank.money import format_amount, parse_amount
from pocketbank.schemas.account import (
    AccountClosed,
    AccountMovementResult,
    AccountOpen,
)
from pocketbank.services.account_locator import AccountLocator
from pocketbank.services.audit_service import AuditLogger
from pocketbank.services.balance_service import BalanceService
from pocketbank.services.unit_of_work import atomic

logger = get_logger("pocketbank.accounts")


class AccountService:

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

    def list_accounts(self, user_id: int) -> list[Account]:
        """Primary account first, then oldest first."""
        accounts = self.db.execute(
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(Account.is_primary.desc(), Account.id)
        ).scalars().all()
        return list(accounts)

    def open_account(self, user_id: int, request: AccountOpen) -> Account:
        """
        Link a new bank account with a zero balance.

        The user's first account is always primary.
        """
        account_number = request.account_number.strip()

        with atomic(self.db, "Open account"):
            if self.locator.lock_user(user_id) is None:
                raise NotFound("User not found")

            existing = self.db.execute(
                select(Account.id, Account.account_number)
                .where(Account.user_id == user_id)
            ).all()
            if any(row.account_number == account_number for row in existing):
                raise InvalidRequest("This bank account is already linked")

            make_primary = request.make_primary or not existing
            if make_primary:
                self._clear_primary(user_id)

            account = Account(
                user_id=user_id,
                bank_name=request.bank_name.strip(),
                bank_type=request.bank_type,
                account_number=account_number,
                is_primary=make_primary,
            )
            self.db.add(account)
            self.db.flush()

        self.db.refresh(account)
        logger.info(
            "User %s linked account %s (%s %s)%s",
            user_id, account.id, account.bank_name, account.masked_number,
            " as primary" if account.is_primary else "",
        )
        return account

    def set_primary(self, user_id: int, account_id: int) -> Account:
        with atomic(self.db, "Set primary account"):
            if self.locator.lock_user(user_id) is None:
                raise NotFound("User not found")
            account = self.locator.lock_account(account_id, user_id)
            if account is None:
                raise NotFound("Account not found or does not belong to you")

            self._clear_primary(user_id)
            account.is_primary = True
            self.db.flush()

        self.db.refresh(account)
        logger.info("User %s set account %s as primary", user_id, account_id)
        return account

    def close_account(self, user_id: int, account_id: int) -> AccountClosed:
        """
        Unlink an account.

        Only an empty account can be closed, and a primary account
        only while the user has another one to promote.
        """
        with atomic(self.db, "Close account"):
            if self.locator.lock_user(user_id) is None:
                raise NotFound("User not found")
            accounts = self.locator.lock_accounts(
                user_id,
                *self.db.execute(
                    select(Account.id).where(Account.user_id == user_id)
                ).scalars(),
            )
            account = accounts.get(account_id)
            if account is None:
                raise NotFound("Account not found or does not belong to you")

            if account.balance != 0:
                raise InvalidRequest(
                    f"Account still holds {format_amount(account.balance)}. "
                    f"Move the money out before closing it."
                )

            promoted = None
            if account.is_primary:
                siblings = [a for a_id, a in sorted(accounts.items()) if a_id != account_id]
                if not siblings:
                    raise InvalidRequest(
                        "Cannot close your only account while it is primary"
                    )
                promoted = siblings[0]
                promoted.is_primary = True

            self.db.delete(account)
            self.db.flush()
            self.balances.sync_account_balance(user_id)

        logger.info(
            "User %s closed account %s%s",
            user_id, account_id,
            f", promoted {promoted.id}" if promoted else "",
        )
        return AccountClosed(
            account_id=account_id,
            promoted_account_id=promoted.id if promoted else None,
        )

    # --- Deposits and withdrawals ---

    def deposit(self, user_id: int, account_id: int, amount) -> AccountMovementResult:
        """Money arriving into an account from outside the system."""
        amount = parse_amount(amount)

        with atomic(self.db, "Account deposit"):
            account = self._lock_owned_account(user_id, account_id)
            before = account.balance
            self.balances.apply_account_delta(user_id, account.id, amount)
            self.audit.log_account_deposit(
                user_id, amount, account.bank_name, account.id,
                before, before + amount,
            )
            result = self._movement(user_id, account.id, amount, before)

        logger.info("Deposited %s to account %s", amount, account_id)
        return result

    def withdraw(self, user_id: int, account_id: int, amount) -> AccountMovementResult:
        """Money leaving an account for outside the system."""
        amount = parse_amount(amount)

        with atomic(self.db, "Account withdrawal"):
            account = self._lock_owned_account(user_id, account_id)
            before = account.balance
            if before < amount:
                raise InsufficientFunds(
                    f"Insufficient account balance. "
                    f"Available: {format_amount(before)}",
                    before,
                )
            self.balances.apply_account_delta(user_id, account.id, -amount)
            self.audit.log_account_withdrawal(
                user_id, amount, account.bank_name, account.id,
                before, before - amount,
            )
            result = self._movement(user_id, account.id, -amount, before)

        logger.info("Withdrew %s from account %s", amount, account_id)
        return result

    # --- Helpers ---

    def _lock_owned_account(self, user_id: int, account_id: int) -> Account:
        if self.locator.lock_user(user_id) is None:
            raise NotFound("User not found")
        account = self.locator.lock_account(account_id, user_id)
        if account is None:
            raise NotFound("Account not found or does not belong to you")
        return account

    def _clear_primary(self, user_id: int) -> None:
        self.db.execute(
            update(Account)
            .where(Account.user_id == user_id, Account.is_primary.is_(True))
            .values(is_primary=False)
            .execution_options(synchronize_session="fetch")
        )

    def _movement(self, user_id, account_id, delta, before) -> AccountMovementResult:
        return AccountMovementResult(
            account_id=account_id,
            amount=abs(delta),
            balance_before=before,
            balance_after=self.balances.account_balance(account_id, user_id),
            account_balance=self.balances.snapshot(user_id).account_balance,
        )
