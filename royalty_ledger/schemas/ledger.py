"""Pydantic schemas for ledger records, ingestion and record settings."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from royalty_ledger.schemas.payout import PayoutResponse


class PlatformDetails(BaseModel):
    """Engagement counters reported with a platform's revenue."""

    playlists: int = Field(0, ge=0)
    saves: int = Field(0, ge=0)
    shares: int = Field(0, ge=0)


class IngestRequest(BaseModel):
    """One platform report for a (user, song, period) triple."""

    user_id: str = Field(..., min_length=1, max_length=64)
    song_id: str = Field(..., min_length=1, max_length=64)
    period: str = Field(
        ...,
        description="Calendar month token, YYYY-MM",
        examples=["2024-03"],
    )
    platform_name: str = Field(..., min_length=1, max_length=100)
    plays_delta: int = Field(0, ge=0)
    revenue_delta: Decimal = Field(
        ...,
        ge=0,
        max_digits=15,
        decimal_places=2,
    )
    details: Optional[PlatformDetails] = None
    white_label_domain: Optional[str] = Field(None, max_length=255)


class ReleaseRequest(BaseModel):
    platform_names: Optional[list[str]] = Field(
        None,
        description="Platforms to release; None = every pending platform",
    )


class SplitEntry(BaseModel):
    collaborator_id: str = Field(..., min_length=1, max_length=64)
    role: Optional[str] = Field(None, max_length=50)
    percentage: Decimal = Field(..., ge=0, le=100, max_digits=7, decimal_places=4)


class SplitsRequest(BaseModel):
    splits: list[SplitEntry] = Field(
        default_factory=list,
        description="Replacement split list; percentages need not sum to 100",
    )


class TaxRateRequest(BaseModel):
    rate: Decimal = Field(..., ge=0, le=100, max_digits=7, decimal_places=4)


class PlatformEarningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    amount: Decimal
    plays: int
    status: str = Field(..., description="pending | available | withdrawn")
    playlists: int = 0
    saves: int = 0
    shares: int = 0


class SplitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    collaborator_id: str
    role: Optional[str] = None
    percentage: Decimal
    amount: Decimal


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    message: str
    created_at: datetime
    read: bool


class LedgerRecordResponse(BaseModel):
    """Full ledger record returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    song_id: str
    period: str
    white_label_domain: Optional[str] = None
    total: Decimal
    pending: Decimal
    available: Decimal
    withdrawn: Decimal
    tax_withholding_rate: Decimal
    tax_withheld_amount: Decimal
    currency: str
    payout_threshold: Decimal
    minimum_payout_reached: bool
    next_payout_date: Optional[date] = None
    last_calculated: Optional[datetime] = None
    version: int
    platforms: list[PlatformEarningResponse] = Field(default_factory=list)
    splits: list[SplitResponse] = Field(default_factory=list)
    payouts: list[PayoutResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
