"""Pure money arithmetic for ledger records.

Every function here works on plain values or on any object exposing the
attributes it reads (ORM rows in production, ``SimpleNamespace`` in tests).
Nothing touches the database, so the balance, split and withholding rules
can be unit-tested in isolation.

Rounding rule: all money is quantized to cents with banker's rounding
(``ROUND_HALF_EVEN``).  Split amounts are rounded independently per entry,
so each part is at most half a cent away from its exact share.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any, Iterable

from royalty_ledger.models.enums import (
    IN_FLIGHT_PAYOUT_STATUSES,
    EarningStatus,
    PayoutStatus,
)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and Decimals to Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    """Round a value to cents using banker's rounding."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class Totals:
    """Balance buckets of a ledger record.

    ``total`` always equals ``pending + available + withdrawn``.
    """

    total: Decimal = ZERO
    pending: Decimal = ZERO
    available: Decimal = ZERO
    withdrawn: Decimal = ZERO


# ── Balance buckets ─────────────────────────────────────────────────


def compute_totals(platforms: Iterable[Any], payouts: Iterable[Any]) -> Totals:
    """Derive the balance buckets from platform lines and payouts.

    Platform amounts are partitioned by their clearing status.  Payouts then
    shift money between buckets:

    * pending/processing payouts hold funds reserved out of ``available``
      and counted under ``pending``;
    * completed payouts moved funds out of ``available`` into ``withdrawn``;
    * failed payouts returned their funds, so they shift nothing.

    Args:
        platforms: Objects with ``amount`` and ``status``.
        payouts: Objects with ``amount`` and ``status``.

    Returns:
        A ``Totals`` whose ``total`` equals the sum of platform amounts.
    """
    base = {status.value: ZERO for status in EarningStatus}
    for platform in platforms:
        status = _status_value(platform.status)
        if status not in base:
            raise ValueError(f"Unknown earning status: {platform.status!r}")
        base[status] += to_decimal(platform.amount)

    reserved = ZERO
    paid = ZERO
    for payout in payouts:
        status = _status_value(payout.status)
        if status in {s.value for s in IN_FLIGHT_PAYOUT_STATUSES}:
            reserved += to_decimal(payout.amount)
        elif status == PayoutStatus.COMPLETED.value:
            paid += to_decimal(payout.amount)

    pending = quantize_money(base[EarningStatus.PENDING.value] + reserved)
    available = quantize_money(base[EarningStatus.AVAILABLE.value] - reserved - paid)
    withdrawn = quantize_money(base[EarningStatus.WITHDRAWN.value] + paid)

    return Totals(
        total=pending + available + withdrawn,
        pending=pending,
        available=available,
        withdrawn=withdrawn,
    )


# ── Splits and withholding ──────────────────────────────────────────


def calculate_split_amount(total: Any, percentage: Any) -> Decimal:
    """Return ``round(total * percentage / 100)`` to the cent."""
    return quantize_money(to_decimal(total) * to_decimal(percentage) / HUNDRED)


def calculate_split_amounts(total: Any, percentages: Iterable[Any]) -> list[Decimal]:
    """Compute each collaborator's amount independently.

    The percentages are not required to add up to 100: over- and
    under-allocation are passed through as-is.

    >>> calculate_split_amounts(Decimal("100.00"), [50, 30, 20])
    [Decimal('50.00'), Decimal('30.00'), Decimal('20.00')]
    """
    return [calculate_split_amount(total, pct) for pct in percentages]


def calculate_withholding(total: Any, rate: Any) -> Decimal:
    """Tax withheld from ``total`` at ``rate`` percent."""
    rate = to_decimal(rate)
    if rate <= 0:
        return ZERO
    return quantize_money(to_decimal(total) * rate / HUNDRED)


def minimum_payout_reached(available: Any, threshold: Any) -> bool:
    available = to_decimal(available)
    return available > 0 and available >= to_decimal(threshold)


def _status_value(status: Any) -> str:
    return status.value if hasattr(status, "value") else str(status)
