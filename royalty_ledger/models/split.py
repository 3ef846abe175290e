"""Revenue split model: a collaborator's fixed share of a record."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.core.database import Base


class RevenueSplit(Base):
    __tablename__ = "revenue_splits"

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
    collaborator_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    role: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    percentage: Mapped[Decimal] = mapped_column(
        Numeric(7, 4),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    record: Mapped[LedgerRecord] = relationship(
        "LedgerRecord",
        back_populates="splits",
    )

    def __repr__(self) -> str:
        return (
            f"<RevenueSplit(collaborator_id={self.collaborator_id!r}, "
            f"percentage={self.percentage}, amount={self.amount})>"
        )
