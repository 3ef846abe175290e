"""Allocation of one payout request across several ledger records.

A user asks to withdraw a single amount, but their money sits in many
(song, period) records.  The allocator decides how much to draw from each,
oldest period first, so older balances are paid out before newer ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Tuple

from royalty_ledger.core.logging import get_logger
from royalty_ledger.services.ledger.calculations import ZERO, to_decimal

logger = get_logger(__name__)


@dataclass
class AllocationResult:
    """Container for allocation outcomes.

    Attributes:
        allocations: Pairs of (record, amount) to reserve, oldest period first.
        total_available: Sum of the available balance across all candidates.
        shortfall: Part of the requested amount no record could cover.
    """

    allocations: List[Tuple[Any, Decimal]] = field(default_factory=list)
    total_available: Decimal = ZERO
    shortfall: Decimal = ZERO

    @property
    def fully_covered(self) -> bool:
        return self.shortfall == ZERO


class PayoutAllocator:
    """Spreads a requested amount over records with available balance.

    The algorithm:
    1. Drop records with nothing available.
    2. Sort the rest by (period, created_at) ascending.
    3. Take ``min(available, remaining)`` from each until nothing remains.
    """

    def allocate(self, records: list, amount: Decimal) -> AllocationResult:
        """Plan how ``amount`` is drawn from ``records``.

        Args:
            records: Objects with ``period`` and ``available`` attributes
                (``created_at`` is used as a tie breaker when present).
            amount: The positive amount requested.

        Returns:
            An ``AllocationResult``; ``shortfall`` is non-zero when the
            records cannot cover the amount.
        """
        result = AllocationResult()
        remaining = to_decimal(amount)

        candidates = [r for r in records if to_decimal(r.available) > ZERO]
        candidates.sort(key=lambda r: (r.period, str(getattr(r, "created_at", ""))))

        for record in candidates:
            available = to_decimal(record.available)
            result.total_available += available

            if remaining <= ZERO:
                continue

            take = min(available, remaining)
            result.allocations.append((record, take))
            remaining -= take

        result.shortfall = max(remaining, ZERO)

        logger.info(
            "Allocation complete: requested=%s records=%d available=%s shortfall=%s",
            amount,
            len(result.allocations),
            result.total_available,
            result.shortfall,
        )

        return result
