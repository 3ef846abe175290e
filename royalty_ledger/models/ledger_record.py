"""Ledger record model: one earnings aggregate per (user, song, period)."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.core.database import Base


class LedgerRecord(Base):
    """Earnings of one song for one user during one calendar month.

    The balance buckets, split amounts and tax withholding are derived
    fields: the ledger service recomputes them from the platform lines and
    the payout list before every commit.  The ``version`` column guards the
    row with SQLAlchemy's optimistic concurrency check.
    """

    __tablename__ = "ledger_records"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    song_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Calendar month token: YYYY-MM",
    )
    white_label_domain: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    # -- Derived balance buckets --
    total: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    pending: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    available: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    withdrawn: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    # -- Tax withholding --
    tax_withholding_rate: Mapped[Decimal] = mapped_column(
        Numeric(7, 4),
        nullable=False,
        default=Decimal("0"),
        comment="Percentage of total withheld for tax",
    )
    tax_withheld_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    # -- Payout metadata --
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
        comment="ISO 4217 currency code",
    )
    payout_threshold: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    minimum_payout_reached: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    next_payout_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    last_calculated: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=func.now(),
    )

    # -- Owned collections --
    platforms: Mapped[list[PlatformEarning]] = relationship(
        "PlatformEarning",
        back_populates="record",
        order_by="PlatformEarning.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    splits: Mapped[list[RevenueSplit]] = relationship(
        "RevenueSplit",
        back_populates="record",
        order_by="RevenueSplit.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    payouts: Mapped[list[Payout]] = relationship(
        "Payout",
        back_populates="record",
        order_by="Payout.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    notifications: Mapped[list[LedgerNotification]] = relationship(
        "LedgerNotification",
        back_populates="record",
        order_by="LedgerNotification.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "song_id", "period", name="uq_ledger_user_song_period"
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<LedgerRecord(user_id={self.user_id!r}, song_id={self.song_id!r}, "
            f"period={self.period!r}, total={self.total})>"
        )
