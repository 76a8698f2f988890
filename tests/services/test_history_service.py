"""
Tests for the HistoryService.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from pocketbank.errors import InvalidRequest, NotFound
from pocketbank.models import (
    EndpointType,
    HistoryCategory,
    HistoryStatus,
    HistoryType,
    LedgerTransactionType,
    TransactionHistory,
)
from pocketbank.schemas.bill import BillCreate
from pocketbank.schemas.history import AuditEntry, Endpoint, HistoryFilter, StatisticsPeriod
from pocketbank.services.audit_service import AuditLogger
from pocketbank.services.bill_service import BillService
from pocketbank.services.account_service import AccountService
from pocketbank.services.history_service import HistoryService
from pocketbank.services.transfer_service import TransferService
from pocketbank.services.wallet_service import WalletService


def seed_activity(db_session, make_user, make_account):
    """Alice: one deposit, one wallet move, one transfer sent to Bob."""
    alice = make_user("alice@test.com", wallet="500.00", full_name="Alice Rao")
    bob = make_user("bob@test.com", wallet="0.00", full_name="Bob Das")
    account = make_account(alice, "HDFC", balance="0.00", is_primary=True)

    AccountService(db_session).deposit(alice.id, account.id, "100")
    WalletService(db_session).move_to_account(alice.id, account.id, "50")
    TransferService(db_session).execute_transfer(
        alice.id, bob.id, "25", "wallet", note="lunch",
    )
    return alice, bob


class TestListHistory:

    def test_newest_first(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)

        page = HistoryService(db_session).list_history(alice.id, HistoryFilter())

        assert [r.transaction_type for r in page.records] == [
            HistoryType.WALLET_TRANSFER,
            HistoryType.WALLET_TO_ACCOUNT,
            HistoryType.ACCOUNT_DEPOSIT,
        ]
        assert page.pagination.total == 3
        assert page.pagination.has_more is False

    def test_only_own_records(self, db_session, make_user, make_account):
        _, bob = seed_activity(db_session, make_user, make_account)

        page = HistoryService(db_session).list_history(bob.id, HistoryFilter())

        assert [r.transaction_type for r in page.records] == [
            HistoryType.WALLET_TRANSFER,
        ]

    def test_filter_by_type_and_category(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)

        by_type = service.list_history(alice.id, HistoryFilter(
            transaction_type=HistoryType.ACCOUNT_DEPOSIT,
        ))
        by_category = service.list_history(alice.id, HistoryFilter(
            category=HistoryCategory.TRANSFER,
        ))

        assert by_type.pagination.total == 1
        assert [r.transaction_type for r in by_category.records] == [
            HistoryType.WALLET_TRANSFER,
            HistoryType.WALLET_TO_ACCOUNT,
        ]
        assert by_category.records[0].description == "Sent ₹25.00 to Bob Das: lunch"

    def test_search(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)

        page = HistoryService(db_session).list_history(
            alice.id, HistoryFilter(search="lunch"),
        )

        assert page.pagination.total == 1
        assert page.records[0].transaction_type == HistoryType.WALLET_TRANSFER

    def test_date_window(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)
        tomorrow = datetime.utcnow() + timedelta(days=1)

        assert service.list_history(
            alice.id, HistoryFilter(start_date=tomorrow),
        ).pagination.total == 0

    def test_paging(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)

        first = service.list_history(alice.id, HistoryFilter(limit=2))
        second = service.list_history(alice.id, HistoryFilter(limit=2, offset=2))

        assert first.pagination.has_more is True
        assert second.pagination.has_more is False
        seen = [r.id for r in first.records + second.records]
        assert len(set(seen)) == 3


class TestListTransfers:

    def test_direction_from_each_side(self, db_session, make_user, make_account):
        alice, bob = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)

        sent = service.list_transfers(alice.id).transfers
        received = service.list_transfers(bob.id).transfers

        assert [t.direction for t in sent] == ["sent"]
        assert [t.direction for t in received] == ["received"]
        assert sent[0].transfer_id == received[0].transfer_id
        assert sent[0].note == "lunch"
        assert sent[0].sender_name == "Alice Rao"
        assert sent[0].recipient_name == "Bob Das"

    def test_stranger_sees_nothing(self, db_session, make_user, make_account):
        seed_activity(db_session, make_user, make_account)
        carol = make_user("carol@test.com")

        page = HistoryService(db_session).list_transfers(carol.id)

        assert page.transfers == []
        assert page.pagination.total == 0


def log_failed_top_up(db_session, user):
    AuditLogger(db_session).log_transaction(AuditEntry(
        user_id=user.id,
        transaction_type=HistoryType.WALLET_FUND,
        amount=Decimal("1000.00"),
        source=Endpoint(type=EndpointType.EXTERNAL, name="Card"),
        destination=Endpoint(type=EndpointType.WALLET, id=user.id, name="Wallet"),
        description="Top-up declined",
        category=HistoryCategory.WALLET_MANAGEMENT,
        status=HistoryStatus.FAILED,
    ))
    db_session.commit()


class TestStatistics:

    def test_totals_and_breakdowns(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)

        stats = HistoryService(db_session).statistics(alice.id)

        overall = stats.overall
        assert stats.period == StatisticsPeriod.MONTH
        assert overall.total_transactions == 3
        assert overall.total_amount == Decimal("175.00")
        assert overall.avg_transaction_amount == Decimal("58.33")
        assert (overall.successful, overall.failed, overall.pending) == (3, 0, 0)
        assert overall.success_rate == Decimal("100.00")

        assert [(t.transaction_type, t.total_amount) for t in stats.by_type] == [
            (HistoryType.ACCOUNT_DEPOSIT, Decimal("100.00")),
            (HistoryType.WALLET_TO_ACCOUNT, Decimal("50.00")),
            (HistoryType.WALLET_TRANSFER, Decimal("25.00")),
        ]
        assert [(c.category, c.count) for c in stats.by_category] == [
            (HistoryCategory.ACCOUNT_MANAGEMENT, 1),
            (HistoryCategory.TRANSFER, 2),
        ]

    def test_failed_records_count_but_add_nothing(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        log_failed_top_up(db_session, alice)

        stats = HistoryService(db_session).statistics(alice.id)

        assert stats.overall.total_transactions == 4
        assert stats.overall.failed == 1
        assert stats.overall.total_amount == Decimal("175.00")
        assert stats.overall.success_rate == Decimal("75.00")
        assert HistoryType.WALLET_FUND not in [t.transaction_type for t in stats.by_type]

    def test_period_window(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        deposit = db_session.execute(
            select(TransactionHistory).where(
                TransactionHistory.user_id == alice.id,
                TransactionHistory.transaction_type == HistoryType.ACCOUNT_DEPOSIT,
            )
        ).scalar_one()
        deposit.created_at = datetime.utcnow() - timedelta(days=40)
        db_session.commit()
        service = HistoryService(db_session)

        assert service.statistics(alice.id, "30d").overall.total_transactions == 2
        assert service.statistics(alice.id, "90d").overall.total_transactions == 3
        assert service.statistics(alice.id, StatisticsPeriod.ALL).overall.total_amount == (
            Decimal("175.00")
        )

    def test_monthly_trend(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        this_month = datetime.utcnow().strftime("%Y-%m")

        trend = HistoryService(db_session).statistics(alice.id, "7d").monthly_trend

        assert len(trend) == 1
        assert trend[0].month == this_month
        assert trend[0].transaction_count == 3
        assert trend[0].total_amount == Decimal("175.00")

    def test_no_activity(self, db_session, make_user):
        carol = make_user("carol@test.com")

        stats = HistoryService(db_session).statistics(carol.id, "all")

        assert stats.overall.total_transactions == 0
        assert stats.overall.total_amount == Decimal("0.00")
        assert stats.overall.avg_transaction_amount == Decimal("0.00")
        assert stats.overall.success_rate == Decimal("0.00")
        assert stats.by_type == []
        assert stats.monthly_trend == []

    def test_unknown_period(self, db_session, make_user):
        carol = make_user("carol@test.com")
        with pytest.raises(ValueError):
            HistoryService(db_session).statistics(carol.id, "2w")


class TestSingleRecords:

    def test_get_own_record(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)
        newest = service.recent(alice.id, limit=1)[0]

        record = service.get_record(alice.id, newest.id)

        assert record.transaction_type == HistoryType.WALLET_TRANSFER
        assert record.balance_before == Decimal("450.00")

    def test_someone_elses_record(self, db_session, make_user, make_account):
        alice, bob = seed_activity(db_session, make_user, make_account)
        service = HistoryService(db_session)
        alices = service.recent(alice.id)[0]

        with pytest.raises(NotFound, match="Transaction not found"):
            service.get_record(bob.id, alices.id)

    def test_recent_is_newest_first(self, db_session, make_user, make_account):
        alice, _ = seed_activity(db_session, make_user, make_account)

        recent = HistoryService(db_session).recent(alice.id, limit=2)

        assert [r.transaction_type for r in recent] == [
            HistoryType.WALLET_TRANSFER,
            HistoryType.WALLET_TO_ACCOUNT,
        ]

    @pytest.mark.parametrize("limit", [0, 51])
    def test_recent_limit_bounds(self, db_session, make_user, limit):
        carol = make_user("carol@test.com")
        with pytest.raises(InvalidRequest, match="between 1 and 50"):
            HistoryService(db_session).recent(carol.id, limit=limit)


@pytest.fixture
def ledger(db_session, make_user, make_account):
    """
    Alice sends Bob 25 from her wallet, moves 100 HDFC -> SBI,
    then pays a 40 bill from HDFC.
    """
    alice = make_user("alice@test.com", wallet="500.00", full_name="Alice Rao")
    bob = make_user("bob@test.com", full_name="Bob Das")
    hdfc = make_account(alice, "HDFC", balance="1000.00", is_primary=True)
    sbi = make_account(alice, "SBI", balance="0.00")

    transfers = TransferService(db_session)
    transfers.execute_transfer(alice.id, bob.id, "25", "wallet")
    transfers.execute_transfer(
        alice.id, alice.id, "100", "account",
        is_self_transfer=True, from_account_id=hdfc.id, to_account_id=sbi.id,
    )
    bills = BillService(db_session)
    bill = bills.create_bill(alice.id, BillCreate(
        provider_name="BESCOM",
        bill_type="Electricity",
        amount=Decimal("40.00"),
        due_date=date.today() + timedelta(days=5),
    ))
    bills.pay_bill(alice.id, bill.id, "Bank Transfer", account_id=hdfc.id)
    return alice, bob, hdfc, sbi


class TestListLedger:

    def test_newest_first(self, db_session, ledger):
        alice, *_ = ledger

        page = HistoryService(db_session).list_ledger(alice.id)

        assert [r.transaction_type for r in page.transactions] == [
            LedgerTransactionType.BILL_PAYMENT,
            LedgerTransactionType.SELF_TRANSFER,
            LedgerTransactionType.TRANSFER,
        ]
        assert page.pagination.total == 3

    def test_recipient_sees_own_row(self, db_session, ledger):
        _, bob, *_ = ledger

        rows = HistoryService(db_session).list_ledger(bob.id).transactions

        assert len(rows) == 1
        assert rows[0].description == "Received ₹25.00 from Alice Rao"
        assert (rows[0].from_account, rows[0].to_account) == ("Wallet", "Wallet")

    def test_self_transfer_listed_once(self, db_session, ledger):
        alice, _, hdfc, sbi = ledger

        page = HistoryService(db_session).list_ledger(alice.id, account_id=sbi.id)

        assert page.pagination.total == 1
        row = page.transactions[0]
        assert row.transaction_type == LedgerTransactionType.SELF_TRANSFER
        assert row.from_account == hdfc.ledger_label
        assert row.to_account == sbi.ledger_label

    def test_account_filter_covers_both_sides(self, db_session, ledger):
        alice, _, hdfc, _ = ledger

        page = HistoryService(db_session).list_ledger(alice.id, account_id=hdfc.id)

        assert [r.transaction_type for r in page.transactions] == [
            LedgerTransactionType.BILL_PAYMENT,
            LedgerTransactionType.SELF_TRANSFER,
        ]
        assert page.transactions[0].to_account == "BESCOM"

    def test_same_bank_accounts_kept_apart(self, db_session, make_user, make_account):
        alice = make_user("alice@test.com")
        first = make_account(alice, "HDFC", balance="500.00", is_primary=True)
        second = make_account(alice, "HDFC", balance="0.00")
        bills = BillService(db_session)
        bill = bills.create_bill(alice.id, BillCreate(
            provider_name="Airtel",
            bill_type="Mobile",
            amount=Decimal("99.00"),
            due_date=date.today() + timedelta(days=5),
        ))
        bills.pay_bill(alice.id, bill.id, "Bank Transfer", account_id=first.id)
        service = HistoryService(db_session)

        assert service.list_ledger(alice.id, account_id=first.id).pagination.total == 1
        assert service.list_ledger(alice.id, account_id=second.id).pagination.total == 0

    def test_foreign_account(self, db_session, ledger, make_account):
        alice, bob, *_ = ledger
        bobs = make_account(bob, "ICICI", balance="0.00")

        with pytest.raises(NotFound, match="does not belong to you"):
            HistoryService(db_session).list_ledger(alice.id, account_id=bobs.id)

    def test_paging(self, db_session, ledger):
        alice, *_ = ledger
        service = HistoryService(db_session)

        first = service.list_ledger(alice.id, limit=2)
        second = service.list_ledger(alice.id, limit=2, offset=2)

        assert first.pagination.has_more is True
        assert second.pagination.has_more is False
        assert len({r.id for r in first.transactions + second.transactions}) == 3
