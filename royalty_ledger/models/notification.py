"""Ledger notification model: status messages awaiting delivery."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.core.database import Base


class LedgerNotification(Base):
    """Human-readable message appended to a record by a payout transition.

    Rows are only ever appended.  An external email/push worker reads them
    and flips ``read`` once the user has seen the message.
    """

    __tablename__ = "ledger_notifications"

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
    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="payout_requested | payout_completed | payout_failed",
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )
    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    record: Mapped[LedgerRecord] = relationship(
        "LedgerRecord",
        back_populates="notifications",
    )

    def __repr__(self) -> str:
        return f"<LedgerNotification(type={self.type!r}, read={self.read})>"
