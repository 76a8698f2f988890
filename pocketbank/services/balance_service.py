"""
Balance mutation.

All balance changes go through apply_wallet_delta and
apply_account_delta. A negative delta is applied with a guarded
UPDATE (... WHERE balance + delta >= 0); if that matches no row
the debit is refused with InsufficientFunds, even when an earlier
read said the money was there.

users.wallet_balance and accounts.balance are authoritative.
users.account_balance is re-derived from the accounts table after
every account change. The wallets table is a best-effort mirror.
"""

from decimal import Decimal

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketbank.config import get_settings
from pocketbank.errors import InsufficientFunds, NotFound
from pocketbank.logging_config import get_logger
from pocketbank.models.account import Account
from pocketbank.models.user import User
from pocketbank.models.wallet import Wallet
from pocketbank.money import format_amount
from pocketbank.schemas.transfer import BalanceSnapshot

logger = get_logger("pocketbank.balances")


# --- Wallet mirror sinks ---

class NullWalletMirror:
    """Mirror that does nothing. Used when the wallets table is retired."""

    def apply(self, db: Session, user_id: int, delta: Decimal) -> None:
        return None


class WalletTableMirror:
    """
    Keeps wallets.wallet_balance roughly in step with users.

    The update runs in a SAVEPOINT. If it fails (table missing,
    row locked elsewhere, anything else the database complains
    about) the savepoint is rolled back, the failure is logged, and
    the surrounding money movement carries on untouched.
    """

    def apply(self, db: Session, user_id: int, delta: Decimal) -> None:
        try:
            with db.begin_nested():
                db.execute(
                    update(Wallet)
                    .where(Wallet.user_id == user_id)
                    .values(wallet_balance=Wallet.wallet_balance + delta)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            logger.warning(
                "Wallet mirror update skipped for user %s: %s", user_id, e
            )


def default_wallet_mirror():
    if get_settings().WALLET_MIRROR_ENABLED:
        return WalletTableMirror()
    return NullWalletMirror()


class BalanceService:
    """
    Applies signed deltas inside the caller's transaction.

    Never commits. The caller holds the row locks (see
    AccountLocator) and owns the transaction boundary.
    """

    def __init__(self, db: Session, mirror=None):
        self.db = db
        self.mirror = mirror if mirror is not None else default_wallet_mirror()

    def apply_wallet_delta(self, user_id: int, delta: Decimal) -> None:
        """Add delta to the user's wallet. Debits are guarded."""
        stmt = update(User).where(User.id == user_id)
        if delta < 0:
            stmt = stmt.where(User.wallet_balance + delta >= 0)

        result = self.db.execute(
            stmt.values(wallet_balance=User.wallet_balance + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            available = self.wallet_balance(user_id)
            if available is None:
                raise NotFound(f"User {user_id} not found")
            raise InsufficientFunds(
                f"Insufficient wallet balance. Available: {format_amount(available)}",
                available,
            )

        self.mirror.apply(self.db, user_id, delta)

    def apply_account_delta(
        self, user_id: int, account_id: int, delta: Decimal
    ) -> None:
        """
        Add delta to one of the user's accounts. Debits are guarded.

        Afterwards the user's cached account_balance is set to the
        sum of all their accounts.
        """
        stmt = update(Account).where(
            Account.id == account_id, Account.user_id == user_id
        )
        if delta < 0:
            stmt = stmt.where(Account.balance + delta >= 0)

        result = self.db.execute(
            stmt.values(balance=Account.balance + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            available = self.account_balance(account_id, user_id)
            if available is None:
                raise NotFound("Account not found or does not belong to you")
            raise InsufficientFunds(
                f"Insufficient account balance. Available: {format_amount(available)}",
                available,
            )

        self.sync_account_balance(user_id)

    def sync_account_balance(self, user_id: int) -> None:
        """Recompute users.account_balance from the accounts table."""
        total = (
            select(func.coalesce(func.sum(Account.balance), 0))
            .where(Account.user_id == user_id)
            .scalar_subquery()
        )
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(account_balance=total)
            .execution_options(synchronize_session=False)
        )

    # --- Reads (straight from the database, bypassing the identity map) ---

    def wallet_balance(self, user_id: int) -> Decimal | None:
        return self.db.execute(
            select(User.wallet_balance).where(User.id == user_id)
        ).scalar_one_or_none()

    def account_balance(self, account_id: int, user_id: int) -> Decimal | None:
        return self.db.execute(
            select(Account.balance).where(
                Account.id == account_id, Account.user_id == user_id
            )
        ).scalar_one_or_none()

    def snapshot(self, user_id: int) -> BalanceSnapshot:
        row = self.db.execute(
            select(User.wallet_balance, User.account_balance)
            .where(User.id == user_id)
        ).one()
        return BalanceSnapshot(
            wallet_balance=row.wallet_balance,
            account_balance=row.account_balance,
        )
