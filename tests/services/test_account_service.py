"""
Tests for the AccountService: linking, primary selection,
closing, deposits and withdrawals.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from pocketbank.errors import InsufficientFunds, InvalidRequest, NotFound
from pocketbank.models import Account, HistoryType, TransactionHistory
from pocketbank.schemas.account import AccountOpen
from pocketbank.services.account_service import AccountService
from pocketbank.services.balance_service import BalanceService


def open_account(service, user, bank="HDFC Bank", number="50100012345678", primary=False):
    return service.open_account(user.id, AccountOpen(
        bank_name=bank, account_number=number, make_primary=primary,
    ))


def primaries(db_session, user_id):
    return db_session.execute(
        select(Account.id).where(Account.user_id == user_id, Account.is_primary.is_(True))
    ).scalars().all()


# --- Opening ---

class TestOpenAccount:

    def test_first_account_is_primary(self, db_session, make_user):
        user = make_user("a@test.com")
        service = AccountService(db_session)

        first = open_account(service, user)
        second = open_account(service, user, bank="SBI", number="30001112223334")

        assert first.is_primary is True
        assert second.is_primary is False
        assert first.balance == Decimal("0.00")

    def test_make_primary_moves_the_flag(self, db_session, make_user):
        user = make_user("a@test.com")
        service = AccountService(db_session)

        open_account(service, user)
        second = open_account(service, user, bank="SBI", number="30001112223334", primary=True)

        assert primaries(db_session, user.id) == [second.id]

    def test_duplicate_number_rejected(self, db_session, make_user):
        user = make_user("a@test.com")
        service = AccountService(db_session)
        open_account(service, user)

        with pytest.raises(InvalidRequest, match="already linked"):
            open_account(service, user)

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFound):
            AccountService(db_session).open_account(999, AccountOpen(
                bank_name="HDFC", account_number="50100012345678",
            ))

    def test_list_primary_first(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC")
        primary = make_account(user, "SBI", is_primary=True)

        listed = AccountService(db_session).list_accounts(user.id)

        assert listed[0].id == primary.id
        assert len(listed) == 2


class TestSetPrimary:

    def test_exactly_one_primary(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC", is_primary=True)
        other = make_account(user, "SBI")

        AccountService(db_session).set_primary(user.id, other.id)

        assert primaries(db_session, user.id) == [other.id]

    def test_foreign_account(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        foreign = make_account(make_user("b@test.com"), "HDFC")

        with pytest.raises(NotFound):
            AccountService(db_session).set_primary(user.id, foreign.id)


# --- Closing ---

class TestCloseAccount:

    def test_close_empty_secondary(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC", is_primary=True)
        spare = make_account(user, "SBI")

        closed = AccountService(db_session).close_account(user.id, spare.id)

        assert closed.promoted_account_id is None
        assert db_session.get(Account, spare.id) is None

    def test_account_with_money_cannot_close(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC", is_primary=True)
        funded = make_account(user, "SBI", balance="0.01")

        with pytest.raises(InvalidRequest, match="Move the money out"):
            AccountService(db_session).close_account(user.id, funded.id)

    def test_only_primary_cannot_close(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        only = make_account(user, "HDFC", is_primary=True)

        with pytest.raises(InvalidRequest, match="only account"):
            AccountService(db_session).close_account(user.id, only.id)

    def test_closing_primary_promotes_oldest_sibling(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        primary = make_account(user, "HDFC", is_primary=True)
        oldest = make_account(user, "SBI", balance="40.00")
        make_account(user, "ICICI")

        closed = AccountService(db_session).close_account(user.id, primary.id)

        assert closed.promoted_account_id == oldest.id
        assert primaries(db_session, user.id) == [oldest.id]
        assert BalanceService(db_session).snapshot(user.id).account_balance == Decimal("40.00")


# --- Deposits and withdrawals ---

class TestMovements:

    def test_deposit(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        account = make_account(user, "HDFC", balance="10.00", is_primary=True)

        result = AccountService(db_session).deposit(user.id, account.id, "90")

        assert result.balance_before == Decimal("10.00")
        assert result.balance_after == Decimal("100.00")
        assert result.account_balance == Decimal("100.00")
        record = db_session.execute(select(TransactionHistory)).scalar_one()
        assert record.transaction_type == HistoryType.ACCOUNT_DEPOSIT

    def test_withdraw(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        account = make_account(user, "HDFC", balance="100.00", is_primary=True)

        result = AccountService(db_session).withdraw(user.id, account.id, "30")

        assert result.amount == Decimal("30.00")
        assert result.balance_after == Decimal("70.00")
        record = db_session.execute(select(TransactionHistory)).scalar_one()
        assert record.transaction_type == HistoryType.ACCOUNT_WITHDRAWAL
        assert record.balance_after == Decimal("70.00")

    def test_withdraw_more_than_balance(self, db_session, make_user, make_account):
        user = make_user("a@test.com")
        account = make_account(user, "HDFC", balance="100.00", is_primary=True)

        with pytest.raises(InsufficientFunds):
            AccountService(db_session).withdraw(user.id, account.id, "100.01")

    def test_two_sixty_percent_withdrawals(self, db_session, make_user, make_account):
        """Of two 60-unit debits against 100, exactly one goes through."""
        user = make_user("a@test.com")
        account = make_account(user, "HDFC", balance="100.00", is_primary=True)
        service = AccountService(db_session)

        outcomes = []
        for _ in range(2):
            try:
                service.withdraw(user.id, account.id, "60")
                outcomes.append("ok")
            except InsufficientFunds:
                outcomes.append("refused")

        assert sorted(outcomes) == ["ok", "refused"]
        assert service.balances.account_balance(account.id, user.id) == Decimal("40.00")
