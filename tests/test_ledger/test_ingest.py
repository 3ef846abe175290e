"""Service tests for earnings ingestion, release, splits and tax.

These run against the SQLite test database through ``LedgerService``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from royalty_ledger.core.exceptions import (
    InvalidAmountError,
    InvalidInputError,
    LedgerRecordNotFoundError,
)
from royalty_ledger.models.ledger_record import LedgerRecord


def _ingest(service, platform="spotify", plays=1000, revenue="50.00", **kwargs):
    params = {
        "user_id": "artist-1",
        "song_id": "song-1",
        "period": "2024-03",
        "platform_name": platform,
        "plays_delta": plays,
        "revenue_delta": Decimal(revenue),
    }
    params.update(kwargs)
    return service.ingest(**params)


def _assert_invariant(record: LedgerRecord) -> None:
    assert record.total == record.pending + record.available + record.withdrawn


class TestIngest:
    def test_first_ingest_creates_record(self, service) -> None:
        record = _ingest(service)

        assert record.user_id == "artist-1"
        assert record.period == "2024-03"
        assert record.currency == "USD"
        assert record.payout_threshold == Decimal("50.00")
        assert record.next_payout_date == date(2024, 4, 16)
        assert record.total == Decimal("50.00")
        assert record.pending == Decimal("50.00")
        assert record.available == Decimal("0.00")
        assert record.last_calculated is not None
        _assert_invariant(record)

    def test_repeated_platform_merges_additively(self, service) -> None:
        """Two reports for spotify make one line: 1500 plays, 75.00."""
        _ingest(service, plays=1000, revenue="50.00")
        record = _ingest(service, plays=500, revenue="25.00")

        assert len(record.platforms) == 1
        spotify = record.platforms[0]
        assert spotify.name == "spotify"
        assert spotify.plays == 1500
        assert spotify.amount == Decimal("75.00")
        assert record.total == Decimal("75.00")

    def test_platform_name_variants_merge(self, service) -> None:
        _ingest(service, platform="Spotify")
        record = _ingest(service, platform="  spotify ")

        assert [p.name for p in record.platforms] == ["spotify"]

    def test_distinct_platforms_keep_order(self, service) -> None:
        _ingest(service, platform="spotify", revenue="10.00")
        _ingest(service, platform="Apple Music", revenue="5.00")
        record = _ingest(service, platform="tidal", revenue="1.00")

        assert [p.name for p in record.platforms] == ["spotify", "apple music", "tidal"]
        assert record.total == Decimal("16.00")

    def test_same_triple_reuses_record(self, service, db_session) -> None:
        _ingest(service)
        _ingest(service, period="2024-3")

        assert db_session.query(LedgerRecord).count() == 1

    def test_other_period_gets_new_record(self, service, db_session) -> None:
        _ingest(service, period="2024-03")
        _ingest(service, period="2024-04")

        assert db_session.query(LedgerRecord).count() == 2

    def test_details_accumulate(self, service) -> None:
        _ingest(service, details={"playlists": 2, "saves": 10})
        record = _ingest(service, details={"playlists": 1, "shares": 3})

        spotify = record.platforms[0]
        assert (spotify.playlists, spotify.saves, spotify.shares) == (3, 10, 3)

    def test_negative_revenue_rejected(self, service) -> None:
        with pytest.raises(InvalidAmountError):
            _ingest(service, revenue="-1.00")

    def test_negative_plays_rejected(self, service) -> None:
        with pytest.raises(InvalidAmountError):
            _ingest(service, plays=-5)

    def test_invalid_period_rejected(self, service) -> None:
        with pytest.raises(InvalidInputError):
            _ingest(service, period="2024-13")

    def test_tenant_recorded(self, service) -> None:
        record = _ingest(service, white_label_domain="label.example.com")
        assert record.white_label_domain == "label.example.com"


class TestRelease:
    def test_release_all_pending(self, service) -> None:
        _ingest(service, platform="spotify", revenue="60.00")
        record = _ingest(service, platform="deezer", revenue="40.00")

        record = service.release_earnings(record.id)

        assert record.available == Decimal("100.00")
        assert record.pending == Decimal("0.00")
        assert record.minimum_payout_reached is True
        assert {p.status for p in record.platforms} == {"available"}

    def test_release_named_platform_only(self, service) -> None:
        _ingest(service, platform="spotify", revenue="60.00")
        record = _ingest(service, platform="deezer", revenue="40.00")

        record = service.release_earnings(record.id, ["Spotify"])

        assert record.available == Decimal("60.00")
        assert record.pending == Decimal("40.00")
        _assert_invariant(record)

    def test_ingest_after_release_grows_released_line(
        self, funded_record, service
    ) -> None:
        record = _ingest(service, revenue="20.00")

        assert record.available == Decimal("120.00")
        assert record.platforms[0].status == "available"
        assert record.platforms[0].amount == Decimal("120.00")

    def test_unknown_record(self, service) -> None:
        with pytest.raises(LedgerRecordNotFoundError):
            service.release_earnings("00000000-0000-0000-0000-000000000000")


class TestSplitsAndTax:
    def test_split_amounts_follow_total(self, service) -> None:
        record = _ingest(service, revenue="200.00")
        service.set_splits(
            record.id,
            [
                {"collaborator_id": "producer-1", "role": "producer", "percentage": 25},
                {"collaborator_id": "writer-1", "role": "writer", "percentage": 10},
            ],
        )

        record = _ingest(service, revenue="100.00")

        assert [s.amount for s in record.splits] == [Decimal("75.00"), Decimal("30.00")]

    def test_split_sum_not_validated(self, service) -> None:
        record = _ingest(service, revenue="100.00")

        record = service.set_splits(
            record.id,
            [
                {"collaborator_id": "a", "percentage": 80},
                {"collaborator_id": "b", "percentage": 40},
            ],
        )

        assert [s.amount for s in record.splits] == [Decimal("80.00"), Decimal("40.00")]

    def test_split_rounding_matches_rule(self, service) -> None:
        record = _ingest(service, revenue="10.00")

        record = service.set_splits(
            record.id, [{"collaborator_id": c, "percentage": "33.3333"} for c in "abc"]
        )

        for split in record.splits:
            assert split.amount == Decimal("3.33")

    def test_split_percentage_out_of_range(self, service) -> None:
        record = _ingest(service)
        with pytest.raises(InvalidAmountError):
            service.set_splits(record.id, [{"collaborator_id": "a", "percentage": 120}])

    def test_replacing_splits(self, service) -> None:
        record = _ingest(service, revenue="100.00")
        service.set_splits(record.id, [{"collaborator_id": "a", "percentage": 50}])

        record = service.set_splits(record.id, [{"collaborator_id": "b", "percentage": 20}])

        assert [(s.collaborator_id, s.amount) for s in record.splits] == [
            ("b", Decimal("20.00"))
        ]

    def test_tax_withholding_recomputed(self, service) -> None:
        record = _ingest(service, revenue="100.00")
        service.set_tax_rate(record.id, Decimal("30"))

        record = _ingest(service, revenue="50.00")

        assert record.tax_withheld_amount == Decimal("45.00")

    def test_tax_rate_out_of_range(self, service) -> None:
        record = _ingest(service)
        with pytest.raises(InvalidAmountError):
            service.set_tax_rate(record.id, Decimal("-1"))
