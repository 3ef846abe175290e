"""Ledger record endpoints.

Handles earnings ingestion from royalty feeds, releasing cleared earnings,
collaborator splits, tax rates, and the notifications attached to a record.
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from royalty_ledger.api.errors import to_http_error
from royalty_ledger.core.config import settings
from royalty_ledger.core.database import get_db
from royalty_ledger.core.exceptions import LedgerError
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.models.notification import LedgerNotification
from royalty_ledger.schemas.ledger import (
    IngestRequest,
    LedgerRecordResponse,
    NotificationResponse,
    ReleaseRequest,
    SplitsRequest,
    TaxRateRequest,
)
from royalty_ledger.services.ledger.service import LedgerService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/ingest", response_model=LedgerRecordResponse)
def ingest_earnings(
    body: IngestRequest,
    db: Session = Depends(get_db),
) -> LedgerRecord:
    """Add one platform's plays and revenue to a ledger record.

    The record for (user, song, period) is created on first ingestion.
    Repeated reports for the same platform are summed into one line.
    """
    service = LedgerService(db=db, config=settings)
    try:
        return service.ingest(
            user_id=body.user_id,
            song_id=body.song_id,
            period=body.period,
            platform_name=body.platform_name,
            plays_delta=body.plays_delta,
            revenue_delta=body.revenue_delta,
            details=body.details.model_dump() if body.details else None,
            white_label_domain=body.white_label_domain,
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.get("/records", response_model=List[LedgerRecordResponse])
def list_records(
    user_id: Optional[str] = Query(None, description="Filter by user"),
    song_id: Optional[str] = Query(None, description="Filter by song"),
    period: Optional[str] = Query(None, description="Filter by period (YYYY-MM)"),
    white_label_domain: Optional[str] = Query(None, description="Filter by tenant"),
    db: Session = Depends(get_db),
) -> list[LedgerRecord]:
    """List ledger records, oldest period first."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.list_records(
            user_id=user_id,
            song_id=song_id,
            period=period,
            white_label_domain=white_label_domain,
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.get("/records/{record_id}", response_model=LedgerRecordResponse)
def get_record(
    record_id: UUID,
    db: Session = Depends(get_db),
) -> LedgerRecord:
    """Retrieve a single ledger record by ID."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.get_record(record_id)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.post("/records/{record_id}/release", response_model=LedgerRecordResponse)
def release_earnings(
    record_id: UUID,
    body: ReleaseRequest,
    db: Session = Depends(get_db),
) -> LedgerRecord:
    """Make cleared platform earnings available for payout."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.release_earnings(record_id, body.platform_names)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.put("/records/{record_id}/splits", response_model=LedgerRecordResponse)
def set_splits(
    record_id: UUID,
    body: SplitsRequest,
    db: Session = Depends(get_db),
) -> LedgerRecord:
    """Replace the collaborator split list of a record."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.set_splits(
            record_id, [split.model_dump() for split in body.splits]
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.put("/records/{record_id}/tax", response_model=LedgerRecordResponse)
def set_tax_rate(
    record_id: UUID,
    body: TaxRateRequest,
    db: Session = Depends(get_db),
) -> LedgerRecord:
    service = LedgerService(db=db, config=settings)
    try:
        return service.set_tax_rate(record_id, body.rate)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.get(
    "/records/{record_id}/notifications",
    response_model=List[NotificationResponse],
)
def list_notifications(
    record_id: UUID,
    unread_only: bool = Query(False, description="Only unread notifications"),
    db: Session = Depends(get_db),
) -> list[LedgerNotification]:
    """List the payout notifications appended to a record, oldest first."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.list_notifications(record_id, unread_only=unread_only)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.post(
    "/records/{record_id}/notifications/{notification_id}/read",
    response_model=NotificationResponse,
)
def mark_notification_read(
    record_id: UUID,
    notification_id: UUID,
    db: Session = Depends(get_db),
) -> LedgerNotification:
    service = LedgerService(db=db, config=settings)
    try:
        return service.mark_notification_read(record_id, notification_id)
    except LedgerError as exc:
        raise to_http_error(exc)
