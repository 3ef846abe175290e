"""API integration tests for the reports / query endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

BASE = "/api/v1/reports"


@pytest.fixture
def catalogue(service):
    """Two songs over three months for artist-1, one payout completed."""
    rows = [
        ("song-1", "2023-12", "spotify", 400, "40.00"),
        ("song-1", "2024-01", "spotify", 1000, "80.00"),
        ("song-1", "2024-01", "apple music", 200, "30.00"),
        ("song-2", "2024-01", "spotify", 100, "10.00"),
    ]
    for song_id, period, platform, plays, revenue in rows:
        service.ingest("artist-1", song_id, period, platform, plays, revenue)

    january = service.find_record("artist-1", "song-1", "2024-01")
    service.release_earnings(january.id)
    service.release_earnings(service.find_record("artist-1", "song-2", "2024-01").id)
    payout = service.request_payout(january.id, Decimal("50.00"), "paypal")
    service.process_payout(january.id, payout.id, "completed", "TX1")
    return service


def test_summary_for_period(client, catalogue):
    response = client.get(f"{BASE}/users/artist-1/summary", params={"period": "2024-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["record_count"] == 2
    assert data["total"] == "120.00"
    assert data["withdrawn"] == "50.00"
    assert data["available"] == "70.00"
    assert data["pending"] == "0.00"
    assert data["platforms"]["spotify"] == {"amount": "90.00", "plays": 1100}
    assert data["best_platform"] == "spotify"


def test_summary_empty_period(client):
    data = client.get(f"{BASE}/users/nobody/summary", params={"period": "2024-01"}).json()

    assert data["record_count"] == 0
    assert data["total"] == "0.00"
    assert data["best_platform"] is None


def test_summary_bad_period(client):
    response = client.get(f"{BASE}/users/artist-1/summary", params={"period": "Jan"})
    assert response.status_code == 422


def test_history_newest_first(client, catalogue):
    data = client.get(f"{BASE}/users/artist-1/history").json()
    assert [r["period"] for r in data] == ["2024-01", "2024-01", "2023-12"]

    data = client.get(
        f"{BASE}/users/artist-1/history", params={"period_to": "2023-12"}
    ).json()
    assert [r["period"] for r in data] == ["2023-12"]


def test_payout_history(client, catalogue):
    data = client.get(f"{BASE}/users/artist-1/payouts").json()

    assert data["total"] == "50.00"
    assert [p["transaction_id"] for p in data["payouts"]] == ["TX1"]


def test_analytics_yearly(client, catalogue):
    data = client.get(
        f"{BASE}/users/artist-1/analytics", params={"granularity": "yearly"}
    ).json()

    assert [b["bucket"] for b in data] == ["2023", "2024"]
    assert data[1]["total"] == "120.00"
    assert data[1]["plays"] == 1300
    assert data[1]["platforms"] == {"apple music": "30.00", "spotify": "90.00"}


def test_analytics_bad_granularity(client):
    response = client.get(
        f"{BASE}/users/artist-1/analytics", params={"granularity": "weekly"}
    )
    assert response.status_code == 400


def test_song_earnings(client, catalogue):
    data = client.get(f"{BASE}/songs/song-1").json()
    assert [r["period"] for r in data] == ["2024-01", "2023-12"]
