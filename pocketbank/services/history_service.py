"""
Read-only queries over the audit trail and the transfers table.

Audit records are append-only, so paging newest-first by id
never skips or repeats a record that already existed.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func, or_, case, extract
from sqlalchemy.orm import Session, aliased

from pocketbank.errors import InvalidRequest, NotFound
from pocketbank.money import CENT
from pocketbank.models.account import Account
from pocketbank.models.enums import HistoryStatus
from pocketbank.models.transaction import Transaction
from pocketbank.models.transaction_history import TransactionHistory
from pocketbank.models.transfer import Transfer
from pocketbank.models.user import User
from pocketbank.schemas.history import (
    CategoryBreakdown,
    HistoryFilter,
    HistoryPage,
    HistoryRecordResponse,
    HistoryStatistics,
    MonthlyTotal,
    OverallStatistics,
    StatisticsPeriod,
    TypeBreakdown,
)
from pocketbank.schemas.transaction import LedgerPage, LedgerRowResponse
from pocketbank.schemas.transfer import (
    Pagination,
    TransferHistoryItem,
    TransferHistoryPage,
)

MAX_RECENT = 50
TREND_MONTHS = 6


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _month_start(now: datetime, months_back: int) -> datetime:
    index = now.year * 12 + now.month - 1 - months_back
    return datetime(index // 12, index % 12 + 1, 1)


class HistoryService:

    def __init__(self, db: Session):
        self.db = db

    def list_history(self, user_id: int, filters: HistoryFilter) -> HistoryPage:
        conditions = [TransactionHistory.user_id == user_id]
        if filters.transaction_type:
            conditions.append(
                TransactionHistory.transaction_type == filters.transaction_type
            )
        if filters.category:
            conditions.append(TransactionHistory.category == filters.category)
        if filters.status:
            conditions.append(TransactionHistory.status == filters.status)
        if filters.start_date:
            conditions.append(TransactionHistory.created_at >= filters.start_date)
        if filters.end_date:
            conditions.append(TransactionHistory.created_at <= filters.end_date)
        if filters.search:
            term = f"%{filters.search.strip()}%"
            conditions.append(or_(
                TransactionHistory.description.ilike(term),
                TransactionHistory.reference_number.ilike(term),
                TransactionHistory.source_name.ilike(term),
                TransactionHistory.destination_name.ilike(term),
            ))

        total = self.db.execute(
            select(func.count(TransactionHistory.id)).where(*conditions)
        ).scalar_one()
        records = self.db.execute(
            select(TransactionHistory)
            .where(*conditions)
            .order_by(TransactionHistory.id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        ).scalars().all()

        return HistoryPage(
            records=[HistoryRecordResponse.model_validate(r) for r in records],
            pagination=Pagination(
                total=total,
                limit=filters.limit,
                offset=filters.offset,
                has_more=filters.offset + len(records) < total,
            ),
        )

    def list_transfers(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> TransferHistoryPage:
        """Transfers the user sent or received, newest first."""
        sender = aliased(User)
        recipient = aliased(User)
        involves_user = or_(
            Transfer.from_user_id == user_id,
            Transfer.to_user_id == user_id,
        )

        total = self.db.execute(
            select(func.count(Transfer.id)).where(involves_user)
        ).scalar_one()
        rows = self.db.execute(
            select(Transfer, sender, recipient)
            .join(sender, Transfer.from_user_id == sender.id)
            .join(recipient, Transfer.to_user_id == recipient.id)
            .where(involves_user)
            .order_by(Transfer.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()

        items = [
            TransferHistoryItem(
                transfer_id=transfer.id,
                transfer_reference=transfer.reference,
                from_user_id=transfer.from_user_id,
                to_user_id=transfer.to_user_id,
                amount=transfer.amount,
                note=transfer.note,
                transfer_date=transfer.created_at,
                sender_name=from_user.display_name,
                recipient_name=to_user.display_name,
                direction="sent" if transfer.from_user_id == user_id else "received",
            )
            for transfer, from_user, to_user in rows
        ]
        return TransferHistoryPage(
            transfers=items,
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        )

    def get_record(self, user_id: int, record_id: int) -> HistoryRecordResponse:
        record = self.db.execute(
            select(TransactionHistory).where(
                TransactionHistory.id == record_id,
                TransactionHistory.user_id == user_id,
            )
        ).scalar_one_or_none()
        if record is None:
            raise NotFound("Transaction not found")
        return HistoryRecordResponse.model_validate(record)

    def recent(self, user_id: int, limit: int = 10) -> list[HistoryRecordResponse]:
        """The latest few audit records, for dashboards."""
        if not 0 < limit <= MAX_RECENT:
            raise InvalidRequest(f"Limit must be between 1 and {MAX_RECENT}")
        records = self.db.execute(
            select(TransactionHistory)
            .where(TransactionHistory.user_id == user_id)
            .order_by(TransactionHistory.id.desc())
            .limit(limit)
        ).scalars().all()
        return [HistoryRecordResponse.model_validate(r) for r in records]

    def statistics(
        self, user_id: int, period: StatisticsPeriod = StatisticsPeriod.MONTH
    ) -> HistoryStatistics:
        """
        Aggregate the user's audit records over a period.

        The monthly trend always covers the current month and the
        five before it, whatever the period.
        """
        period = StatisticsPeriod(period)
        now = datetime.utcnow()
        mine = [TransactionHistory.user_id == user_id]
        if period.days is not None:
            mine.append(TransactionHistory.created_at >= now - timedelta(days=period.days))
        succeeded = TransactionHistory.status == HistoryStatus.SUCCESS

        def with_status(status):
            return func.count(case((TransactionHistory.status == status, 1)))

        overall = self.db.execute(
            select(
                func.count(TransactionHistory.id),
                func.sum(case((succeeded, TransactionHistory.amount))),
                func.avg(case((succeeded, TransactionHistory.amount))),
                with_status(HistoryStatus.SUCCESS),
                with_status(HistoryStatus.FAILED),
                with_status(HistoryStatus.PENDING),
            ).where(*mine)
        ).one()
        total, amount, average, successful, failed, pending = overall
        rate = Decimal(successful * 100) / total if total else Decimal("0")

        count = func.count(TransactionHistory.id).label("count")
        amount_sum = func.coalesce(func.sum(TransactionHistory.amount), 0).label("total_amount")

        by_type = self.db.execute(
            select(TransactionHistory.transaction_type, count, amount_sum)
            .where(*mine, succeeded)
            .group_by(TransactionHistory.transaction_type)
            .order_by(amount_sum.desc())
        ).all()
        by_category = self.db.execute(
            select(TransactionHistory.category, count, amount_sum)
            .where(*mine, succeeded)
            .group_by(TransactionHistory.category)
            .order_by(amount_sum.desc())
        ).all()

        year = extract("year", TransactionHistory.created_at)
        month = extract("month", TransactionHistory.created_at)
        trend = self.db.execute(
            select(year, month, count, amount_sum)
            .where(
                TransactionHistory.user_id == user_id,
                succeeded,
                TransactionHistory.created_at >= _month_start(now, TREND_MONTHS - 1),
            )
            .group_by(year, month)
            .order_by(year.desc(), month.desc())
        ).all()

        return HistoryStatistics(
            period=period,
            overall=OverallStatistics(
                total_transactions=total,
                total_amount=_money(amount),
                avg_transaction_amount=_money(average),
                successful=successful,
                failed=failed,
                pending=pending,
                success_rate=rate.quantize(CENT),
            ),
            by_type=[
                TypeBreakdown(transaction_type=t, count=n, total_amount=_money(s))
                for t, n, s in by_type
            ],
            by_category=[
                CategoryBreakdown(category=c, count=n, total_amount=_money(s))
                for c, n, s in by_category
            ],
            monthly_trend=[
                MonthlyTotal(
                    month=f"{int(y):04d}-{int(m):02d}",
                    transaction_count=n,
                    total_amount=_money(s),
                )
                for y, m, n, s in trend
            ],
        )

    def list_ledger(
        self,
        user_id: int,
        account_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> LedgerPage:
        """
        Rows of the user's transactions ledger, newest first.

        With account_id, only rows where that account is on either
        side. A self transfer is a single row, so it is listed once.
        """
        conditions = [Transaction.user_id == user_id]
        if account_id is not None:
            account = self.db.execute(
                select(Account).where(
                    Account.id == account_id, Account.user_id == user_id
                )
            ).scalar_one_or_none()
            if account is None:
                raise NotFound("Account not found or does not belong to you")
            label = account.ledger_label
            conditions.append(or_(
                Transaction.from_account == label,
                Transaction.to_account == label,
            ))

        total = self.db.execute(
            select(func.count(Transaction.id)).where(*conditions)
        ).scalar_one()
        rows = self.db.execute(
            select(Transaction)
            .where(*conditions)
            .order_by(Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return LedgerPage(
            transactions=[LedgerRowResponse.model_validate(r) for r in rows],
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(rows) < total,
            ),
        )
