"""Payout model: a withdrawal owned by exactly one ledger record."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.core.database import Base


class Payout(Base):
    """A single withdrawal request and its processing outcome.

    Lifecycle: pending -> processing -> completed | failed.  Completed and
    failed are terminal; the ledger service refuses to move a payout out of
    them.
    """

    __tablename__ = "payouts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    record_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("ledger_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="paypal | bank_transfer | crypto",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending | processing | completed | failed",
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )
    requested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    record: Mapped[LedgerRecord] = relationship(
        "LedgerRecord",
        back_populates="payouts",
    )

    def __repr__(self) -> str:
        return (
            f"<Payout(id={self.id!r}, amount={self.amount}, "
            f"method={self.method!r}, status={self.status!r})>"
        )
