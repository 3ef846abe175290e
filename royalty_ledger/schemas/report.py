"""Pydantic schemas for earnings reports."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PlatformTotals(BaseModel):
    amount: Decimal
    plays: int


class EarningsSummary(BaseModel):
    """A user's buckets for one period, summed over their songs."""

    user_id: str
    period: str
    record_count: int
    total: Decimal
    pending: Decimal
    available: Decimal
    withdrawn: Decimal
    platforms: dict[str, PlatformTotals] = Field(default_factory=dict)
    best_platform: Optional[str] = Field(
        None,
        description="Platform with the highest amount in the period",
    )


class AnalyticsBucket(BaseModel):
    bucket: str = Field(..., description="YYYY-MM (monthly) or YYYY (yearly)")
    total: Decimal
    plays: int
    platforms: dict[str, Decimal] = Field(default_factory=dict)
