"""Payout lifecycle endpoints.

Provides routes to request payouts (from one record or across a user's
records), report processing outcomes, correlate provider callbacks by
transaction id, and dispatch payouts to the sandbox gateways in the
background.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from royalty_ledger.api.errors import to_http_error
from royalty_ledger.core.config import settings
from royalty_ledger.core.database import get_db
from royalty_ledger.core.exceptions import InvalidPayoutTransitionError, LedgerError
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.enums import PayoutStatus
from royalty_ledger.models.payout import Payout
from royalty_ledger.schemas.payout import (
    DispatchResponse,
    PayoutRequest,
    PayoutResponse,
    ProcessPayoutRequest,
    TransactionCallbackRequest,
    UserPayoutRequest,
)
from royalty_ledger.services.ledger.service import LedgerService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/records/{record_id}", response_model=PayoutResponse)
def request_payout(
    record_id: UUID,
    body: PayoutRequest,
    db: Session = Depends(get_db),
) -> Payout:
    """Reserve part of a record's available balance as a pending payout.

    The payment provider is not contacted here; use the dispatch endpoint
    or report the outcome via the process endpoint.
    """
    service = LedgerService(db=db, config=settings)
    try:
        return service.request_payout(
            record_id, body.amount, body.method.value, notes=body.notes
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.post("/users/{user_id}", response_model=List[PayoutResponse])
def request_user_payout(
    user_id: str,
    body: UserPayoutRequest,
    db: Session = Depends(get_db),
) -> list[Payout]:
    """Withdraw one amount drawn from a user's records, oldest period first."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.request_user_payout(
            user_id,
            body.amount,
            body.method.value,
            notes=body.notes,
            white_label_domain=body.white_label_domain,
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.post(
    "/records/{record_id}/{payout_id}/process",
    response_model=PayoutResponse,
)
def process_payout(
    record_id: UUID,
    payout_id: UUID,
    body: ProcessPayoutRequest,
    db: Session = Depends(get_db),
) -> Payout:
    """Apply a processing outcome; completed and failed are final."""
    service = LedgerService(db=db, config=settings)
    try:
        return service.process_payout(
            record_id, payout_id, body.status.value, body.transaction_id
        )
    except LedgerError as exc:
        raise to_http_error(exc)


@router.post(
    "/transactions/{transaction_id}",
    response_model=List[PayoutResponse],
)
def process_transaction_callback(
    transaction_id: str,
    body: TransactionCallbackRequest,
    db: Session = Depends(get_db),
) -> list[Payout]:
    """Provider callback: finalize every open payout carrying this transaction id.

    A user-level withdrawal shares one batch id across its per-record payouts.
    """
    service = LedgerService(db=db, config=settings)
    try:
        return service.process_payout_by_transaction(transaction_id, body.status.value)
    except LedgerError as exc:
        raise to_http_error(exc)


# ── Background dispatch endpoints ────────────────────────────────────


@router.post(
    "/records/{record_id}/{payout_id}/dispatch",
    response_model=DispatchResponse,
)
def dispatch_payout(
    record_id: UUID,
    payout_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> DispatchResponse:
    """Send a pending payout to its gateway as a background job.

    Returns immediately with a job_id that can be polled via GET /jobs/{id}.
    """
    from royalty_ledger.core.database import SessionLocal
    from royalty_ledger.services.payments.dispatch import submit_payout_dispatch

    service = LedgerService(db=db, config=settings)
    try:
        payout = service.get_payout(record_id, payout_id)
    except LedgerError as exc:
        raise to_http_error(exc)

    if payout.status != PayoutStatus.PENDING.value:
        raise to_http_error(
            InvalidPayoutTransitionError(
                f"Payout {payout_id} is {payout.status}; only pending payouts "
                "can be dispatched"
            )
        )

    job_id = submit_payout_dispatch(
        db_factory=SessionLocal,
        record_id=str(record_id),
        payout_id=str(payout_id),
        background_tasks=background_tasks,
    )
    return DispatchResponse(
        job_id=job_id,
        status="pending",
        message="Payout dispatch submitted",
    )


@router.get("/jobs")
def list_jobs():
    """List all submitted payout dispatch jobs."""
    from royalty_ledger.services.payments.dispatch import list_jobs as _list_jobs

    return {"jobs": _list_jobs()}


@router.get("/jobs/{job_id}")
def get_job(job_id: str):
    """Poll a specific job's status by its ID."""
    from royalty_ledger.services.payments.dispatch import get_job_status

    job = get_job_status(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
