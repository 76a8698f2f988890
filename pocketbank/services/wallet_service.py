"""
Wallet service: moves between a user's wallet and their own
bank accounts.
"""

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from pocketbank.errors import NotFound, InsufficientFunds
from pocketbank.logging_config import get_logger
from pocketbank.models.account import Account
from pocketbank.money import format_amount, parse_amount
from pocketbank.schemas.wallet import BalancesResponse, WalletMoveResult
from pocketbank.services.account_locator import AccountLocator
from pocketbank.services.audit_service import AuditLogger
from pocketbank.services.balance_service import BalanceService
from pocketbank.services.unit_of_work import atomic

logger = get_logger("pocketbank.wallet")


class WalletService:

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

    def get_balances(self, user_id: int) -> BalancesResponse:
        if self.balances.wallet_balance(user_id) is None:
            raise NotFound("User not found")
        snapshot = self.balances.snapshot(user_id)
        total_accounts = self.db.execute(
            select(func.count(Account.id)).where(Account.user_id == user_id)
        ).scalar_one()
        return BalancesResponse(
            wallet_balance=snapshot.wallet_balance,
            account_balance=snapshot.account_balance,
            total_accounts=total_accounts,
        )

    def move_to_account(self, user_id: int, account_id: int, amount) -> WalletMoveResult:
        """Wallet -> one of the user's bank accounts."""
        amount = parse_amount(amount)

        with atomic(self.db, "Wallet to account"):
            user = self.locator.lock_user(user_id)
            if user is None:
                raise NotFound("User not found")
            account = self.locator.lock_account(account_id, user_id)
            if account is None:
                raise NotFound("Account not found or does not belong to you")

            wallet_before = user.wallet_balance
            if wallet_before < amount:
                raise InsufficientFunds(
                    f"Insufficient wallet balance. "
                    f"Available: {format_amount(wallet_before)}",
                    wallet_before,
                )
            self.balances.apply_wallet_delta(user_id, -amount)
            self.balances.apply_account_delta(user_id, account.id, amount)

            self.audit.log_wallet_to_account(
                user_id, amount, account.bank_name, account.id,
                wallet_before, wallet_before - amount,
            )
            result = self._result(
                user_id, account.id, amount,
                f"{format_amount(amount)} transferred to account successfully",
            )

        logger.info(
            "User %s moved %s from wallet to account %s",
            user_id, amount, account_id,
        )
        return result

    def add_from_account(self, user_id: int, account_id: int, amount) -> WalletMoveResult:
        """
        One of the user's bank accounts -> wallet.

        Audited twice: the account debit and the wallet funding,
        each with its own before/after balance.
        """
        amount = parse_amount(amount)

        with atomic(self.db, "Account to wallet"):
            user = self.locator.lock_user(user_id)
            if user is None:
                raise NotFound("User not found")
            account = self.locator.lock_account(account_id, user_id)
            if account is None:
                raise NotFound("Account not found or does not belong to you")

            account_before = account.balance
            if account_before < amount:
                raise InsufficientFunds(
                    f"Insufficient account balance. "
                    f"Available: {format_amount(account_before)}",
                    account_before,
                )
            wallet_before = user.wallet_balance
            self.balances.apply_account_delta(user_id, account.id, -amount)
            self.balances.apply_wallet_delta(user_id, amount)

            self.audit.log_account_to_wallet(
                user_id, amount, account.bank_name, account.id,
                account_before, account_before - amount,
            )
            self.audit.log_wallet_fund(
                user_id, amount, account.bank_name,
                wallet_before, wallet_before + amount,
                account_id=account.id,
            )
            result = self._result(
                user_id, account.id, amount,
                f"{format_amount(amount)} added to wallet from {account.bank_name}",
            )

        logger.info(
            "User %s moved %s from account %s to wallet",
            user_id, amount, account_id,
        )
        return result

    def _result(self, user_id, account_id, amount, message) -> WalletMoveResult:
        snapshot = self.balances.snapshot(user_id)
        return WalletMoveResult(
            account_id=account_id,
            amount=amount,
            wallet_balance=snapshot.wallet_balance,
            account_balance=snapshot.account_balance,
            message=message,
        )
