"""Platform earning model: one streaming platform's line within a record."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.core.database import Base


class PlatformEarning(Base):
    """Revenue and plays reported by one platform for a ledger record.

    Ingestion is additive: repeated reports for the same platform grow this
    line instead of adding a second one.  ``name`` holds the normalized
    platform key, so it is unique within a record.
    """

    __tablename__ = "platform_earnings"

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
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    plays: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending | available | withdrawn",
    )

    # -- Engagement details reported alongside the revenue --
    playlists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    saves: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shares: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    record: Mapped[LedgerRecord] = relationship(
        "LedgerRecord",
        back_populates="platforms",
    )

    __table_args__ = (
        UniqueConstraint("record_id", "name", name="uq_platform_per_record"),
    )

    def __repr__(self) -> str:
        return (
            f"<PlatformEarning(name={self.name!r}, amount={self.amount}, "
            f"plays={self.plays}, status={self.status!r})>"
        )
