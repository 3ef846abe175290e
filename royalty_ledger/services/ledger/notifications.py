"""Notification emitter for payout lifecycle events.

Only builds and appends messages to the ledger record.  Delivery by
email, push or SMS is handled elsewhere by a worker reading these rows.
"""

from __future__ import annotations

from royalty_ledger.core.clock import utcnow
from royalty_ledger.models.enums import NotificationType
from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.models.notification import LedgerNotification
from royalty_ledger.models.payout import Payout
from royalty_ledger.services.ledger.calculations import quantize_money


def payout_requested_message(amount, currency: str, method: str) -> str:
    return (
        f"Payout request of {quantize_money(amount)} {currency} "
        f"via {method} has been submitted."
    )


def payout_completed_message(amount, currency: str) -> str:
    return f"Payout of {quantize_money(amount)} {currency} has been processed."


def payout_failed_message(amount, currency: str) -> str:
    return f"Payout of {quantize_money(amount)} {currency} has failed."


def emit(
    record: LedgerRecord,
    notification_type: NotificationType,
    message: str,
) -> LedgerNotification:
    """Append a notification to ``record`` and return it."""
    notification = LedgerNotification(
        type=notification_type.value,
        message=message,
        created_at=utcnow(),
        read=False,
    )
    record.notifications.append(notification)
    return notification


def emit_payout_requested(record: LedgerRecord, payout: Payout) -> LedgerNotification:
    return emit(
        record,
        NotificationType.PAYOUT_REQUESTED,
        payout_requested_message(payout.amount, record.currency, payout.method),
    )


def emit_payout_completed(record: LedgerRecord, payout: Payout) -> LedgerNotification:
    return emit(
        record,
        NotificationType.PAYOUT_COMPLETED,
        payout_completed_message(payout.amount, record.currency),
    )


def emit_payout_failed(record: LedgerRecord, payout: Payout) -> LedgerNotification:
    return emit(
        record,
        NotificationType.PAYOUT_FAILED,
        payout_failed_message(payout.amount, record.currency),
    )
