"""
Audit trail API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pocketbank.api.deps import get_current_user_id
from pocketbank.errors import PocketBankError
from pocketbank.models.base import get_db
from pocketbank.services.history_service import HistoryService, MAX_RECENT
from pocketbank.schemas.history import (
    HistoryFilter,
    HistoryPage,
    HistoryRecordResponse,
    HistoryStatistics,
    StatisticsPeriod,
)

router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=HistoryPage)
def list_history(
    filters: Annotated[HistoryFilter, Query()],
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    The caller's audit records, newest first.

    Every balance change shows up here with the balance before
    and after it.
    """
    return HistoryService(db).list_history(user_id, filters)


@router.get("/statistics", response_model=HistoryStatistics)
def get_statistics(
    period: StatisticsPeriod = StatisticsPeriod.MONTH,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Totals by type, by category and by month for the period."""
    return HistoryService(db).statistics(user_id, period)


@router.get("/recent", response_model=list[HistoryRecordResponse])
def recent_history(
    limit: int = Query(default=10, gt=0, le=MAX_RECENT),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return HistoryService(db).recent(user_id, limit)


@router.get("/{record_id}", response_model=HistoryRecordResponse)
def get_record(
    record_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = HistoryService(db)
    try:
        return service.get_record(user_id, record_id)
    except PocketBankError as e:
        raise HTTPException(status_code=e.status_code, detail=e.public_message)
