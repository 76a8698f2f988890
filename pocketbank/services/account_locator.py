"""
Row-locking lookups for users and accounts.

Every read that feeds a balance check takes SELECT ... FOR UPDATE
so two concurrent movements cannot both pass the check on the
same stale balance. Locks last until the enclosing transaction
commits or rolls back.

Lock order, used by every service:
    bill (if any) -> users by ascending id -> accounts
Accounts are only ever locked while their owner's user row is
already locked, so the account order cannot deadlock.

Lookups return None for a missing row; callers decide which
domain error that becomes.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from pocketbank.models.account import Account
from pocketbank.models.user import User


class AccountLocator:

    def __init__(self, db: Session):
        self.db = db

    def lock_user(self, user_id: int) -> User | None:
        """Lock and return a user row with fresh balances."""
        return self.db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_users(self, *user_ids: int) -> dict[int, User]:
        """
        Lock several users, lowest id first.

        Two transfers between the same pair in opposite directions
        lock in the same order and so cannot deadlock. Missing users
        are left out of the result.
        """
        locked = {}
        for user_id in sorted(set(user_ids)):
            user = self.lock_user(user_id)
            if user is not None:
                locked[user_id] = user
        return locked

    def lock_primary_account(self, user_id: int) -> Account | None:
        """
        Lock the user's default account.

        The primary account wins; without one, the oldest account.
        None when the user has no accounts at all.
        """
        return self.db.execute(
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(Account.is_primary.desc(), Account.id.asc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_account(self, account_id: int, user_id: int) -> Account | None:
        """Lock an account, but only if it belongs to user_id."""
        return self.db.execute(
            select(Account)
            .where(Account.id == account_id, Account.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_accounts(self, user_id: int, *account_ids: int) -> dict[int, Account]:
        """Lock several of one user's accounts in ascending id order."""
        locked = {}
        for account_id in sorted(set(account_ids)):
            account = self.lock_account(account_id, user_id)
            if account is not None:
                locked[account_id] = account
        return locked
