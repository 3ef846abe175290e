"""Background payout dispatch.

Hands a pending payout to its method's gateway and feeds the outcome back
into the ledger: ``processing`` while the provider works, then
``completed`` or ``failed``.  Jobs are tracked in an in-memory dict (MVP
approach; a production system would keep them in a DB table or a task
queue like Celery).
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from royalty_ledger.core.config import Settings, settings
from royalty_ledger.core.exceptions import LedgerError
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.enums import PayoutMethod, PayoutStatus
from royalty_ledger.services.ledger.service import LedgerService
from royalty_ledger.services.payments.base_gateway import PaymentGateway
from royalty_ledger.services.payments.sandbox_gateway import SandboxGateway

logger = get_logger(__name__)

# In-memory job tracker (simple dict for MVP)
_jobs: dict[str, dict] = {}


def build_gateways(config: Settings) -> dict[str, PaymentGateway]:
    """Gateway registry keyed by payout method."""
    return {
        method.value: SandboxGateway(method.value, config.sandbox_payout_limit)
        for method in PayoutMethod
    }


def submit_payout_dispatch(
    db_factory,  # callable that creates a new session
    record_id: str,
    payout_id: str,
    background_tasks: BackgroundTasks,
    gateway: Optional[PaymentGateway] = None,
) -> str:
    """Submit a payout to be sent in the background.

    Returns job_id immediately so the caller can poll for status later.
    """
    job_id = str(uuid.uuid4())
    _jobs[job_id] = {
        "job_id": job_id,
        "status": "pending",
        "record_id": str(record_id),
        "payout_id": str(payout_id),
        "payout_status": None,
        "transaction_id": None,
        "error": None,
    }
    background_tasks.add_task(
        _run_job, job_id, db_factory, str(record_id), str(payout_id), gateway
    )
    logger.info("Payout dispatch submitted: job=%s payout=%s", job_id, payout_id)
    return job_id


def _run_job(
    job_id: str,
    db_factory,
    record_id: str,
    payout_id: str,
    gateway: Optional[PaymentGateway] = None,
) -> None:
    """Background task that sends one payout and finalizes it."""
    job = _jobs[job_id]
    job["status"] = "running"
    db: Session = db_factory()
    try:
        service = LedgerService(db, settings)
        payout = service.process_payout(
            record_id, payout_id, PayoutStatus.PROCESSING.value
        )
        record = service.get_record(record_id)
        gateway = gateway or build_gateways(settings)[payout.method]

        try:
            result = gateway.send(payout, record.currency)
        except Exception as exc:
            # Unknown whether money moved: leave the payout in processing
            logger.exception("Gateway error for payout %s", payout_id)
            job["status"] = "failed"
            job["payout_status"] = PayoutStatus.PROCESSING.value
            job["error"] = f"Gateway error: {exc}"
            return

        if result.success:
            payout = service.process_payout(
                record_id,
                payout_id,
                PayoutStatus.COMPLETED.value,
                transaction_id=result.transaction_id,
            )
        else:
            payout = service.process_payout(
                record_id, payout_id, PayoutStatus.FAILED.value
            )
            job["error"] = result.message

        job["status"] = "completed"
        job["payout_status"] = payout.status
        job["transaction_id"] = payout.transaction_id
    except LedgerError as exc:
        logger.error("Payout dispatch job %s failed: %s", job_id, exc.message)
        job["status"] = "failed"
        job["error"] = exc.message
    except Exception as exc:
        logger.exception("Payout dispatch job %s crashed", job_id)
        job["status"] = "failed"
        job["error"] = str(exc)
    finally:
        db.close()


def get_job_status(job_id: str) -> dict | None:
    """Look up a job by ID.  Returns None if not found."""
    return _jobs.get(job_id)


def list_jobs() -> list[dict]:
    """Return all tracked jobs (oldest first by insertion order)."""
    return list(_jobs.values())
