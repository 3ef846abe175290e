"""Unit tests for the PayoutAllocator.

These tests are *pure*: no database, no network, no side effects.
We use SimpleNamespace to create lightweight stand-ins for ledger records.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from royalty_ledger.services.ledger.allocator import PayoutAllocator


def _record(period: str, available: str) -> SimpleNamespace:
    """Create a minimal record-like object."""
    return SimpleNamespace(period=period, available=Decimal(available), created_at=None)


@pytest.fixture
def allocator() -> PayoutAllocator:
    return PayoutAllocator()


class TestPayoutAllocator:
    def test_single_record_covers_amount(self, allocator: PayoutAllocator) -> None:
        record = _record("2024-01", "100.00")

        result = allocator.allocate([record], Decimal("60.00"))

        assert result.allocations == [(record, Decimal("60.00"))]
        assert result.fully_covered
        assert result.total_available == Decimal("100.00")

    def test_oldest_period_drawn_first(self, allocator: PayoutAllocator) -> None:
        newer = _record("2024-03", "50.00")
        older = _record("2024-01", "30.00")

        result = allocator.allocate([newer, older], Decimal("70.00"))

        assert [(r.period, amt) for r, amt in result.allocations] == [
            ("2024-01", Decimal("30.00")),
            ("2024-03", Decimal("40.00")),
        ]
        assert result.fully_covered

    def test_empty_records_skipped(self, allocator: PayoutAllocator) -> None:
        empty = _record("2024-01", "0.00")
        funded = _record("2024-02", "80.00")

        result = allocator.allocate([empty, funded], Decimal("80.00"))

        assert [r for r, _ in result.allocations] == [funded]

    def test_shortfall_reported(self, allocator: PayoutAllocator) -> None:
        result = allocator.allocate(
            [_record("2024-01", "20.00"), _record("2024-02", "20.00")],
            Decimal("50.00"),
        )

        assert not result.fully_covered
        assert result.shortfall == Decimal("10.00")
        assert result.total_available == Decimal("40.00")

    def test_no_records(self, allocator: PayoutAllocator) -> None:
        result = allocator.allocate([], Decimal("1.00"))

        assert result.allocations == []
        assert result.shortfall == Decimal("1.00")
