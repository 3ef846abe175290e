"""Pydantic schemas for payout requests, processing and dispatch jobs."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from royalty_ledger.models.enums import PayoutMethod, PayoutStatus


class PayoutRequest(BaseModel):
    """Request body to withdraw part of the available balance."""

    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=15,
        decimal_places=2,
    )
    method: PayoutMethod
    notes: Optional[str] = Field(None, max_length=1000)


class UserPayoutRequest(PayoutRequest):
    """Payout drawn across every record of a user."""

    white_label_domain: Optional[str] = Field(None, max_length=255)


class ProcessPayoutRequest(BaseModel):
    """Outcome reported by the payment side for a payout."""

    status: PayoutStatus = Field(
        ...,
        description="processing | completed | failed",
    )
    transaction_id: Optional[str] = Field(None, max_length=100)


class TransactionCallbackRequest(BaseModel):
    status: PayoutStatus


class PayoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    record_id: UUID
    amount: Decimal
    method: str
    status: str
    transaction_id: Optional[str] = None
    requested_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    notes: Optional[str] = None


class PayoutHistoryResponse(BaseModel):
    payouts: list[PayoutResponse] = Field(default_factory=list)
    total: Decimal


class DispatchResponse(BaseModel):
    job_id: str
    status: str
    message: str
