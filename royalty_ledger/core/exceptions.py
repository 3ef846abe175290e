"""Domain errors raised by the ledger and payout services.

Every error carries the HTTP status code the route layer should answer
with, so handlers can translate them without a lookup table.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures scoped to a single request."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidAmountError(LedgerError):
    """Amount is non-positive (payouts) or negative (ingest deltas, rates)."""

    status_code = 422


class InvalidMethodError(LedgerError):
    """Payout method is not one of the supported methods."""

    status_code = 422


class InsufficientBalanceError(LedgerError):
    status_code = 400


class BelowMinimumThresholdError(LedgerError):
    status_code = 400


class LedgerRecordNotFoundError(LedgerError):
    status_code = 404


class PayoutNotFoundError(LedgerError):
    status_code = 404


class NotificationNotFoundError(LedgerError):
    status_code = 404


class InvalidPayoutTransitionError(LedgerError):
    """Target status is not reachable from the payout's current status."""

    status_code = 409


class ConcurrentModificationError(LedgerError):
    """The record changed underneath us; the caller may reload and retry."""

    status_code = 409


class StorageError(LedgerError):
    status_code = 503


class InvalidInputError(LedgerError):
    """Malformed period token, blank platform name or similar input."""

    status_code = 422
