"""Enumerations shared by the ledger models, schemas and services."""

from __future__ import annotations

from enum import Enum


class EarningStatus(str, Enum):
    """Clearing state of a platform's earnings within a record."""

    PENDING = "pending"
    AVAILABLE = "available"
    WITHDRAWN = "withdrawn"


class PayoutMethod(str, Enum):
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CRYPTO = "crypto"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class NotificationType(str, Enum):
    PAYOUT_REQUESTED = "payout_requested"
    PAYOUT_COMPLETED = "payout_completed"
    PAYOUT_FAILED = "payout_failed"


# Payouts holding reserved funds (moved from available into pending)
IN_FLIGHT_PAYOUT_STATUSES = frozenset({PayoutStatus.PENDING, PayoutStatus.PROCESSING})

TERMINAL_PAYOUT_STATUSES = frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED})

# current status -> statuses the processor may move it to
PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset(
        {PayoutStatus.PROCESSING, PayoutStatus.COMPLETED, PayoutStatus.FAILED}
    ),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    PayoutStatus.COMPLETED: frozenset(),
    PayoutStatus.FAILED: frozenset(),
}
