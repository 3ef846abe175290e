"""Read-only earnings reports built from ledger records.

Aggregation is done in Python over the ORM rows rather than with SQL
GROUP BY, so the same code runs on SQLite in tests and PostgreSQL in
production.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.models.payout import Payout
from royalty_ledger.services.ledger.calculations import ZERO, quantize_money

logger = get_logger(__name__)

GRANULARITIES = ("monthly", "yearly")


def _user_records(
    db: Session,
    user_id: str,
    white_label_domain: Optional[str] = None,
):
    query = db.query(LedgerRecord).filter(LedgerRecord.user_id == user_id)
    if white_label_domain is not None:
        query = query.filter(LedgerRecord.white_label_domain == white_label_domain)
    return query


def summarize_user_earnings(
    db: Session,
    user_id: str,
    period: str,
    white_label_domain: Optional[str] = None,
) -> dict[str, Any]:
    """Summed buckets and per-platform breakdown of a user's month.

    Returns:
        Dict with ``total``, ``pending``, ``available``, ``withdrawn``,
        ``platforms`` (name -> amount/plays), ``best_platform`` and
        ``record_count``.
    """
    records = (
        _user_records(db, user_id, white_label_domain)
        .filter(LedgerRecord.period == period)
        .all()
    )

    buckets = {"total": ZERO, "pending": ZERO, "available": ZERO, "withdrawn": ZERO}
    platforms: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"amount": ZERO, "plays": 0}
    )
    for record in records:
        for key in buckets:
            buckets[key] += Decimal(getattr(record, key) or 0)
        for platform in record.platforms:
            platforms[platform.name]["amount"] += Decimal(platform.amount or 0)
            platforms[platform.name]["plays"] += platform.plays or 0

    best_platform = max(
        platforms, key=lambda name: platforms[name]["amount"], default=None
    )

    logger.info(
        "Earnings summary: user=%s period=%s records=%d total=%s",
        user_id,
        period,
        len(records),
        buckets["total"],
    )

    return {
        "user_id": user_id,
        "period": period,
        "record_count": len(records),
        **{key: quantize_money(value) for key, value in buckets.items()},
        "platforms": {
            name: {"amount": quantize_money(v["amount"]), "plays": v["plays"]}
            for name, v in sorted(platforms.items())
        },
        "best_platform": best_platform,
    }


def earnings_history(
    db: Session,
    user_id: str,
    period_from: Optional[str] = None,
    period_to: Optional[str] = None,
    white_label_domain: Optional[str] = None,
) -> list[LedgerRecord]:
    """A user's records, newest period first, optionally bounded by period."""
    query = _user_records(db, user_id, white_label_domain)
    if period_from is not None:
        query = query.filter(LedgerRecord.period >= period_from)
    if period_to is not None:
        query = query.filter(LedgerRecord.period <= period_to)
    return query.order_by(LedgerRecord.period.desc()).all()


def song_earnings(db: Session, song_id: str) -> list[LedgerRecord]:
    return (
        db.query(LedgerRecord)
        .filter(LedgerRecord.song_id == song_id)
        .order_by(LedgerRecord.period.desc())
        .all()
    )


def payout_history(
    db: Session,
    user_id: str,
    white_label_domain: Optional[str] = None,
) -> dict[str, Any]:
    """Every payout of the user, newest first, with the summed amount."""
    query = (
        db.query(Payout)
        .join(LedgerRecord, Payout.record_id == LedgerRecord.id)
        .filter(LedgerRecord.user_id == user_id)
    )
    if white_label_domain is not None:
        query = query.filter(LedgerRecord.white_label_domain == white_label_domain)
    payouts = query.all()

    # processed_at is None for payouts still pending; fall back to requested_at
    payouts.sort(
        key=lambda p: p.processed_at or p.requested_at,
        reverse=True,
    )
    total = sum((Decimal(p.amount) for p in payouts), ZERO)

    return {"payouts": payouts, "total": quantize_money(total)}


def earnings_analytics(
    db: Session,
    user_id: str,
    granularity: str = "monthly",
    white_label_domain: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Totals grouped by month or year, oldest bucket first.

    Args:
        granularity: ``monthly`` groups by ``YYYY-MM``, ``yearly`` by ``YYYY``.

    Raises:
        ValueError: For an unknown granularity.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}"
        )

    grouped: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"total": ZERO, "plays": 0, "platforms": defaultdict(lambda: ZERO)}
    )
    for record in _user_records(db, user_id, white_label_domain).all():
        bucket_key = record.period if granularity == "monthly" else record.period[:4]
        bucket = grouped[bucket_key]
        bucket["total"] += Decimal(record.total or 0)
        for platform in record.platforms:
            bucket["plays"] += platform.plays or 0
            bucket["platforms"][platform.name] += Decimal(platform.amount or 0)

    return [
        {
            "bucket": key,
            "total": quantize_money(grouped[key]["total"]),
            "plays": grouped[key]["plays"],
            "platforms": {
                name: quantize_money(amount)
                for name, amount in sorted(grouped[key]["platforms"].items())
            },
        }
        for key in sorted(grouped)
    ]
