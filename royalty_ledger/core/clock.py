"""Timestamp helper used for every persisted datetime."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (columns are timezone-naive)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
