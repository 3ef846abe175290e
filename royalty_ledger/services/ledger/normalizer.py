"""Normalizer utility functions for incoming earnings data.

Royalty feeds disagree on capitalization, spacing and date tokens
("Spotify", " spotify ", "Apple  Music", "2024/3", ...).  These functions
give every caller one canonical form so ledger lines merge instead of
duplicating.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional

from royalty_ledger.core.clock import utcnow
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.enums import PayoutMethod, PayoutStatus

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Accepts YYYY-MM, YYYY-M, YYYY/MM and YYYY/M
_PERIOD_RE = re.compile(r"^(\d{4})[-/](\d{1,2})$")

# Common aliases seen in payment UIs -> canonical payout method
_METHOD_ALIASES: dict[str, str] = {
    "paypal": PayoutMethod.PAYPAL.value,
    "pay_pal": PayoutMethod.PAYPAL.value,
    "bank_transfer": PayoutMethod.BANK_TRANSFER.value,
    "bank": PayoutMethod.BANK_TRANSFER.value,
    "wire": PayoutMethod.BANK_TRANSFER.value,
    "crypto": PayoutMethod.CRYPTO.value,
}


def normalize_platform_name(name: str) -> str:
    """Canonical platform key: trimmed, whitespace collapsed, case-folded.

    Args:
        name: Raw platform name from the royalty feed.

    Returns:
        The key used to match platform lines within a record.

    Raises:
        ValueError: If the name is blank.
    """
    key = _WHITESPACE_RE.sub(" ", name.strip()).casefold()
    if not key:
        raise ValueError("Platform name must not be blank")
    return key


def normalize_period(period: str) -> str:
    """Normalize a calendar-month token to ``YYYY-MM``.

    Args:
        period: Raw period string, e.g. "2024-3" or "2024/03".

    Returns:
        Zero-padded ``YYYY-MM`` token.

    Raises:
        ValueError: If the token is not a valid year/month.
    """
    match = _PERIOD_RE.match(period.strip())
    if not match:
        raise ValueError(f"Invalid period {period!r}; expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period {period!r}")
    return f"{year:04d}-{month:02d}"


def current_period(today: Optional[date] = None) -> str:
    """Period token for the month containing ``today`` (defaults to now)."""
    today = today or utcnow().date()
    return f"{today.year:04d}-{today.month:02d}"


def period_payout_date(period: str, hold_days: int) -> date:
    """First day of the month after ``period``, pushed back by ``hold_days``."""
    year, month = (int(part) for part in normalize_period(period).split("-"))
    if month == 12:
        year, month = year + 1, 1
    else:
        month += 1
    return date(year, month, 1) + timedelta(days=hold_days)


def normalize_currency(code: str) -> str:
    """Uppercase a three-letter ISO 4217 currency code.

    Raises:
        ValueError: If the code is not three letters.
    """
    stripped = code.strip()
    if len(stripped) != 3 or not stripped.isalpha():
        raise ValueError(f"Unknown currency code: {code!r}")
    return stripped.upper()


def normalize_payout_method(method: str) -> Optional[str]:
    """Map a raw payout method to its canonical value, or None if unknown."""
    key = _WHITESPACE_RE.sub("_", method.strip().lower()).replace("-", "_")
    canonical = _METHOD_ALIASES.get(key)
    if canonical is None:
        logger.warning("Unknown payout method %r", method)
    return canonical


def normalize_payout_status(status: str) -> Optional[str]:
    """Lowercase a payout status and check it is a known value."""
    value = status.strip().lower()
    if value in {s.value for s in PayoutStatus}:
        return value
    logger.warning("Unknown payout status %r", status)
    return None
