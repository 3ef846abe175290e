"""Reporting and query endpoints.

Provides routes for a user's monthly summary, earnings history, payout
history and analytics, plus a song's earnings across periods.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from royalty_ledger.api.errors import to_http_error
from royalty_ledger.core.database import get_db
from royalty_ledger.core.exceptions import InvalidInputError
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.schemas.ledger import LedgerRecordResponse
from royalty_ledger.schemas.payout import PayoutHistoryResponse
from royalty_ledger.schemas.report import AnalyticsBucket, EarningsSummary
from royalty_ledger.services.ledger import reports
from royalty_ledger.services.ledger.normalizer import current_period, normalize_period

logger = get_logger(__name__)

router = APIRouter()


def _parse_period(value: Optional[str], name: str) -> Optional[str]:
    if value is None:
        return None
    try:
        return normalize_period(value)
    except ValueError as exc:
        raise to_http_error(InvalidInputError(f"Invalid {name}: {exc}"))


@router.get("/users/{user_id}/summary", response_model=EarningsSummary)
def earnings_summary(
    user_id: str,
    period: Optional[str] = Query(
        None, description="Period (YYYY-MM); defaults to the current month"
    ),
    white_label_domain: Optional[str] = Query(None, description="Filter by tenant"),
    db: Session = Depends(get_db),
) -> dict:
    """Summed buckets and per-platform totals for one month."""
    period = _parse_period(period, "period") or current_period()
    return reports.summarize_user_earnings(db, user_id, period, white_label_domain)


@router.get("/users/{user_id}/history", response_model=List[LedgerRecordResponse])
def earnings_history(
    user_id: str,
    period_from: Optional[str] = Query(None, description="Period >= (YYYY-MM)"),
    period_to: Optional[str] = Query(None, description="Period <= (YYYY-MM)"),
    white_label_domain: Optional[str] = Query(None, description="Filter by tenant"),
    db: Session = Depends(get_db),
) -> list[LedgerRecord]:
    """A user's ledger records, newest period first."""
    return reports.earnings_history(
        db,
        user_id,
        _parse_period(period_from, "period_from"),
        _parse_period(period_to, "period_to"),
        white_label_domain,
    )


@router.get("/users/{user_id}/payouts", response_model=PayoutHistoryResponse)
def payout_history(
    user_id: str,
    white_label_domain: Optional[str] = Query(None, description="Filter by tenant"),
    db: Session = Depends(get_db),
) -> dict:
    """Every payout of the user, newest first, with the summed amount."""
    history = reports.payout_history(db, user_id, white_label_domain)
    logger.info(
        "Payout history: user=%s payouts=%d total=%s",
        user_id,
        len(history["payouts"]),
        history["total"],
    )
    return history


@router.get("/users/{user_id}/analytics", response_model=List[AnalyticsBucket])
def earnings_analytics(
    user_id: str,
    granularity: str = Query("monthly", description="monthly | yearly"),
    white_label_domain: Optional[str] = Query(None, description="Filter by tenant"),
    db: Session = Depends(get_db),
) -> list[dict]:
    """Earnings totals grouped by month or year."""
    try:
        return reports.earnings_analytics(db, user_id, granularity, white_label_domain)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/songs/{song_id}", response_model=List[LedgerRecordResponse])
def song_earnings(
    song_id: str,
    db: Session = Depends(get_db),
) -> list[LedgerRecord]:
    """A song's ledger records across periods, newest first."""
    return reports.song_earnings(db, song_id)
