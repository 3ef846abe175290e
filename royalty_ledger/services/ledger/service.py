"""Ledger service: earnings ingestion and the payout lifecycle.

Every mutating operation follows the same shape:
  1. Load the ledger record (or create it, for a first ingestion).
  2. Validate the request against the record's current state.
  3. Mutate platform lines, splits or payouts.
  4. Recompute the derived buckets, splits and withholding.
  5. Commit.  The record's ``version`` column makes the commit fail if
     another writer got there first, so two payout requests can never both
     spend the same available balance.
"""

from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from royalty_ledger.core.clock import utcnow
from royalty_ledger.core.config import Settings
from royalty_ledger.core.exceptions import (
    BelowMinimumThresholdError,
    ConcurrentModificationError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidInputError,
    InvalidMethodError,
    InvalidPayoutTransitionError,
    LedgerRecordNotFoundError,
    NotificationNotFoundError,
    PayoutNotFoundError,
    StorageError,
)
from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.enums import (
    PAYOUT_TRANSITIONS,
    TERMINAL_PAYOUT_STATUSES,
    EarningStatus,
    PayoutStatus,
)
from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.models.notification import LedgerNotification
from royalty_ledger.models.payout import Payout
from royalty_ledger.models.platform_earning import PlatformEarning
from royalty_ledger.models.split import RevenueSplit
from royalty_ledger.services.ledger import notifications
from royalty_ledger.services.ledger.allocator import PayoutAllocator
from royalty_ledger.services.ledger.calculations import (
    ZERO,
    calculate_split_amounts,
    calculate_withholding,
    compute_totals,
    minimum_payout_reached,
    quantize_money,
    to_decimal,
)
from royalty_ledger.services.ledger.normalizer import (
    normalize_currency,
    normalize_payout_method,
    normalize_payout_status,
    normalize_period,
    normalize_platform_name,
    period_payout_date,
)

logger = get_logger(__name__)

_DETAIL_FIELDS = ("playlists", "saves", "shares")

IdLike = Union[uuid.UUID, str]


class LedgerService:
    """Reads and mutates ledger records inside one database session."""

    def __init__(self, db: Session, config: Settings) -> None:
        self.db = db
        self.config = config
        self.allocator = PayoutAllocator()

    # ── Queries ──────────────────────────────────────────────────────

    def get_record(self, record_id: IdLike) -> LedgerRecord:
        """Load a record by id or raise ``LedgerRecordNotFoundError``."""
        key = _as_uuid(record_id, LedgerRecordNotFoundError)
        record = self.db.get(LedgerRecord, key)
        if record is None:
            raise LedgerRecordNotFoundError(f"Ledger record {record_id} not found")
        return record

    def find_record(
        self,
        user_id: str,
        song_id: str,
        period: str,
    ) -> Optional[LedgerRecord]:
        return (
            self.db.query(LedgerRecord)
            .filter(
                LedgerRecord.user_id == user_id,
                LedgerRecord.song_id == song_id,
                LedgerRecord.period == _period(period),
            )
            .first()
        )

    def list_records(
        self,
        user_id: Optional[str] = None,
        song_id: Optional[str] = None,
        period: Optional[str] = None,
        white_label_domain: Optional[str] = None,
    ) -> list[LedgerRecord]:
        """List records matching the given filters, oldest period first."""
        query = self.db.query(LedgerRecord)
        if user_id is not None:
            query = query.filter(LedgerRecord.user_id == user_id)
        if song_id is not None:
            query = query.filter(LedgerRecord.song_id == song_id)
        if period is not None:
            query = query.filter(LedgerRecord.period == _period(period))
        if white_label_domain is not None:
            query = query.filter(LedgerRecord.white_label_domain == white_label_domain)
        return query.order_by(LedgerRecord.period.asc(), LedgerRecord.created_at.asc()).all()

    def get_payout(self, record_id: IdLike, payout_id: IdLike) -> Payout:
        return self._find_payout(self.get_record(record_id), payout_id)

    # ── Earnings ingestion ───────────────────────────────────────────

    def ingest(
        self,
        user_id: str,
        song_id: str,
        period: str,
        platform_name: str,
        plays_delta: int,
        revenue_delta: Any,
        details: Optional[dict[str, int]] = None,
        white_label_domain: Optional[str] = None,
    ) -> LedgerRecord:
        """Add one platform report to the (user, song, period) record.

        The platform line is created on first sight and grown additively
        afterwards; its status stays ``pending`` until released.

        Raises:
            InvalidAmountError: If any delta or detail counter is negative.
        """
        revenue = _parse_amount(revenue_delta)
        if revenue < ZERO or plays_delta < 0:
            raise InvalidAmountError(
                f"Ingest deltas must be non-negative (plays={plays_delta}, "
                f"revenue={revenue_delta})"
            )
        details = details or {}
        for key in _DETAIL_FIELDS:
            if details.get(key, 0) < 0:
                raise InvalidAmountError(f"Detail counter {key!r} must be non-negative")

        period = _period(period)
        platform_key = _platform(platform_name)

        record = self._get_or_create_record(user_id, song_id, period, white_label_domain)

        platform = next((p for p in record.platforms if p.name == platform_key), None)
        if platform is None:
            platform = PlatformEarning(
                name=platform_key,
                amount=ZERO,
                plays=0,
                status=EarningStatus.PENDING.value,
                playlists=0,
                saves=0,
                shares=0,
            )
            record.platforms.append(platform)

        platform.amount = quantize_money(to_decimal(platform.amount) + revenue)
        platform.plays = (platform.plays or 0) + plays_delta
        for key in _DETAIL_FIELDS:
            setattr(platform, key, (getattr(platform, key) or 0) + details.get(key, 0))

        self.recalculate(record)
        self._commit("ingest")

        logger.info(
            "Ingested earnings: record=%s platform=%s plays=+%d revenue=+%s total=%s",
            record.id,
            platform_key,
            plays_delta,
            revenue,
            record.total,
        )
        return record

    def release_earnings(
        self,
        record_id: IdLike,
        platform_names: Optional[Iterable[str]] = None,
    ) -> LedgerRecord:
        """Mark cleared platform earnings as available for payout.

        Args:
            record_id: The ledger record to update.
            platform_names: Platforms to release; ``None`` releases every
                pending line.
        """
        record = self.get_record(record_id)
        wanted = (
            None
            if platform_names is None
            else {_platform(name) for name in platform_names}
        )

        released = []
        for platform in record.platforms:
            if platform.status != EarningStatus.PENDING.value:
                continue
            if wanted is not None and platform.name not in wanted:
                continue
            platform.status = EarningStatus.AVAILABLE.value
            released.append(platform.name)

        self.recalculate(record)
        self._commit("release")

        logger.info(
            "Released earnings: record=%s platforms=%s available=%s",
            record.id,
            released,
            record.available,
        )
        return record

    def set_splits(self, record_id: IdLike, splits: Iterable[Any]) -> LedgerRecord:
        """Replace the collaborator splits of a record.

        Each entry needs ``collaborator_id``, ``percentage`` and optionally
        ``role`` (mapping or attribute access).  Percentages are checked
        individually; their sum is deliberately not checked.
        """
        record = self.get_record(record_id)

        new_splits = []
        for entry in splits:
            percentage = _parse_amount(_field(entry, "percentage"))
            if percentage < 0 or percentage > 100:
                raise InvalidAmountError(
                    f"Split percentage must be between 0 and 100, got {percentage}"
                )
            new_splits.append(
                RevenueSplit(
                    collaborator_id=_field(entry, "collaborator_id"),
                    role=_field(entry, "role", None),
                    percentage=percentage,
                    amount=ZERO,
                )
            )

        record.splits = new_splits

        self.recalculate(record)
        self._commit("set_splits")

        logger.info(
            "Splits updated: record=%s count=%d percent_sum=%s",
            record.id,
            len(new_splits),
            sum((s.percentage for s in new_splits), Decimal("0")),
        )
        return record

    def set_tax_rate(self, record_id: IdLike, rate: Any) -> LedgerRecord:
        record = self.get_record(record_id)
        rate = _parse_amount(rate)
        if rate < 0 or rate > 100:
            raise InvalidAmountError(f"Tax rate must be between 0 and 100, got {rate}")

        record.tax_withholding_rate = rate
        self.recalculate(record)
        self._commit("set_tax_rate")

        logger.info(
            "Tax rate updated: record=%s rate=%s withheld=%s",
            record.id,
            rate,
            record.tax_withheld_amount,
        )
        return record

    # ── Payout requests ──────────────────────────────────────────────

    def request_payout(
        self,
        record_id: IdLike,
        amount: Any,
        method: str,
        notes: Optional[str] = None,
    ) -> Payout:
        """Reserve ``amount`` of the record's available balance for a payout.

        Raises:
            InvalidAmountError: Amount is not a positive whole-cent value.
            InvalidMethodError: Unknown payout method.
            InsufficientBalanceError: Amount exceeds the available balance.
            BelowMinimumThresholdError: Amount is under the payout threshold.
        """
        amount = _validate_payout_amount(amount)
        method = _validate_method(method)
        record = self.get_record(record_id)

        available = to_decimal(record.available)
        if amount > available:
            logger.warning(
                "Payout rejected (insufficient): record=%s amount=%s available=%s",
                record.id,
                amount,
                available,
            )
            raise InsufficientBalanceError(
                f"Insufficient available balance: requested {amount}, "
                f"available {quantize_money(available)} {record.currency}"
            )

        threshold = to_decimal(record.payout_threshold)
        if amount < threshold:
            logger.warning(
                "Payout rejected (threshold): record=%s amount=%s threshold=%s",
                record.id,
                amount,
                threshold,
            )
            raise BelowMinimumThresholdError(
                f"Amount {amount} is below the minimum payout threshold of "
                f"{quantize_money(threshold)} {record.currency}"
            )

        payout = self._reserve(record, amount, method, notes)
        self._commit("request_payout")

        logger.info(
            "Payout requested: record=%s payout=%s amount=%s method=%s",
            record.id,
            payout.id,
            amount,
            method,
        )
        return payout

    def request_user_payout(
        self,
        user_id: str,
        amount: Any,
        method: str,
        notes: Optional[str] = None,
        white_label_domain: Optional[str] = None,
    ) -> list[Payout]:
        """Draw one requested amount from several of a user's records.

        Funds are taken oldest period first, one pending payout per
        contributing record, all in a single commit.  The threshold applied
        is the largest one among records holding an available balance.
        """
        amount = _validate_payout_amount(amount)
        method = _validate_method(method)

        records = self.list_records(user_id=user_id, white_label_domain=white_label_domain)
        allocation = self.allocator.allocate(records, amount)

        if not allocation.fully_covered:
            logger.warning(
                "User payout rejected (insufficient): user=%s amount=%s available=%s",
                user_id,
                amount,
                allocation.total_available,
            )
            raise InsufficientBalanceError(
                f"Insufficient available balance: requested {amount}, "
                f"available {quantize_money(allocation.total_available)}"
            )

        funded = [r for r in records if to_decimal(r.available) > ZERO]
        threshold = max(
            (to_decimal(r.payout_threshold) for r in funded), default=ZERO
        )
        if amount < threshold:
            raise BelowMinimumThresholdError(
                f"Amount {amount} is below the minimum payout threshold of "
                f"{quantize_money(threshold)}"
            )

        payouts = [
            self._reserve(record, take, method, notes)
            for record, take in allocation.allocations
        ]
        self._commit("request_user_payout")

        logger.info(
            "User payout requested: user=%s amount=%s method=%s payouts=%d",
            user_id,
            amount,
            method,
            len(payouts),
        )
        return payouts

    # ── Payout processing ────────────────────────────────────────────

    def process_payout(
        self,
        record_id: IdLike,
        payout_id: IdLike,
        status: str,
        transaction_id: Optional[str] = None,
    ) -> Payout:
        """Move a payout along its lifecycle and settle the balances.

        ``completed`` turns the reserved funds into withdrawn funds and
        ``failed`` returns them to the available balance; both are final.

        Raises:
            PayoutNotFoundError: No payout with this id on the record.
            InvalidPayoutTransitionError: Target status is not reachable,
                e.g. the payout already completed or failed.
        """
        record = self.get_record(record_id)
        payout = self._find_payout(record, payout_id)

        self._transition(record, payout, _target_status(status), transaction_id)
        self._commit("process_payout")
        return payout

    def process_payout_by_transaction(
        self,
        transaction_id: str,
        status: str,
    ) -> list[Payout]:
        """Apply a provider callback to every open payout carrying the id.

        A user-level withdrawal sends several per-record payouts under one
        batch transaction id, so one callback finalizes all of them in a
        single commit.

        Raises:
            PayoutNotFoundError: No payout carries ``transaction_id``.
            InvalidPayoutTransitionError: Every matching payout is already
                completed or failed, or the status is not reachable.
        """
        target = _target_status(status)
        payouts = (
            self.db.query(Payout)
            .filter(Payout.transaction_id == transaction_id)
            .order_by(Payout.requested_at.asc())
            .all()
        )
        if not payouts:
            raise PayoutNotFoundError(
                f"No payout with transaction id {transaction_id!r}"
            )

        terminal = {s.value for s in TERMINAL_PAYOUT_STATUSES}
        open_payouts = [p for p in payouts if p.status not in terminal]
        if not open_payouts:
            raise InvalidPayoutTransitionError(
                f"All payouts with transaction id {transaction_id!r} are already final"
            )

        for payout in open_payouts:
            self._transition(self.get_record(payout.record_id), payout, target, None)
        self._commit("process_payout_by_transaction")

        logger.info(
            "Transaction callback applied: txn=%s status=%s payouts=%d",
            transaction_id,
            target,
            len(open_payouts),
        )
        return open_payouts

    # ── Notifications ────────────────────────────────────────────────

    def list_notifications(
        self,
        record_id: IdLike,
        unread_only: bool = False,
    ) -> list[LedgerNotification]:
        record = self.get_record(record_id)
        return [n for n in record.notifications if not (unread_only and n.read)]

    def mark_notification_read(
        self,
        record_id: IdLike,
        notification_id: IdLike,
    ) -> LedgerNotification:
        record = self.get_record(record_id)
        wanted = _as_uuid(notification_id, NotificationNotFoundError)
        notification = next((n for n in record.notifications if n.id == wanted), None)
        if notification is None:
            raise NotificationNotFoundError(
                f"Notification {notification_id} not found on record {record.id}"
            )
        notification.read = True
        # Touch the parent row so the version check covers this write too
        record.last_calculated = utcnow()
        self._commit("mark_notification_read")
        return notification

    # ── Derived fields ───────────────────────────────────────────────

    def recalculate(self, record: LedgerRecord) -> None:
        """Recompute buckets, split amounts, withholding and payout metadata."""
        totals = compute_totals(record.platforms, record.payouts)
        record.total = totals.total
        record.pending = totals.pending
        record.available = totals.available
        record.withdrawn = totals.withdrawn

        amounts = calculate_split_amounts(
            totals.total, [split.percentage for split in record.splits]
        )
        for split, amount in zip(record.splits, amounts):
            split.amount = amount

        record.tax_withheld_amount = calculate_withholding(
            totals.total, record.tax_withholding_rate
        )
        record.minimum_payout_reached = minimum_payout_reached(
            totals.available, record.payout_threshold
        )
        record.last_calculated = utcnow()

    # ── Private helpers ──────────────────────────────────────────────

    def _get_or_create_record(
        self,
        user_id: str,
        song_id: str,
        period: str,
        white_label_domain: Optional[str],
    ) -> LedgerRecord:
        record = self.find_record(user_id, song_id, period)
        if record is not None:
            return record

        record = LedgerRecord(
            id=uuid.uuid4(),
            user_id=user_id,
            song_id=song_id,
            period=period,
            white_label_domain=white_label_domain,
            total=ZERO,
            pending=ZERO,
            available=ZERO,
            withdrawn=ZERO,
            tax_withholding_rate=Decimal("0"),
            tax_withheld_amount=ZERO,
            currency=normalize_currency(self.config.default_currency),
            payout_threshold=quantize_money(self.config.default_payout_threshold),
            minimum_payout_reached=False,
            next_payout_date=period_payout_date(period, self.config.payout_hold_days),
        )
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError:
            # Another writer created the same (user, song, period) first
            self.db.rollback()
            record = self.find_record(user_id, song_id, period)
            if record is None:
                raise
            return record

        logger.info(
            "Created ledger record: id=%s user=%s song=%s period=%s",
            record.id,
            user_id,
            song_id,
            period,
        )
        return record

    def _reserve(
        self,
        record: LedgerRecord,
        amount: Decimal,
        method: str,
        notes: Optional[str],
    ) -> Payout:
        """Append a pending payout and its notification, then recompute."""
        payout = Payout(
            id=uuid.uuid4(),
            amount=amount,
            method=method,
            status=PayoutStatus.PENDING.value,
            requested_at=utcnow(),
            notes=notes,
        )
        record.payouts.append(payout)
        notifications.emit_payout_requested(record, payout)
        self.recalculate(record)
        return payout

    def _transition(
        self,
        record: LedgerRecord,
        payout: Payout,
        target: str,
        transaction_id: Optional[str],
    ) -> None:
        """Move one payout to ``target`` and recompute; the caller commits."""
        current = PayoutStatus(payout.status)
        if PayoutStatus(target) not in PAYOUT_TRANSITIONS[current]:
            logger.warning(
                "Payout transition rejected: payout=%s %s -> %s",
                payout.id,
                current.value,
                target,
            )
            raise InvalidPayoutTransitionError(
                f"Payout {payout.id} cannot move from {current.value} to {target}"
            )

        if transaction_id is not None:
            if payout.transaction_id and payout.transaction_id != transaction_id:
                raise InvalidPayoutTransitionError(
                    f"Payout {payout.id} already has transaction id "
                    f"{payout.transaction_id!r}"
                )
            payout.transaction_id = transaction_id

        payout.status = target
        payout.processed_at = utcnow()

        if target == PayoutStatus.COMPLETED.value:
            notifications.emit_payout_completed(record, payout)
        elif target == PayoutStatus.FAILED.value:
            notifications.emit_payout_failed(record, payout)

        self.recalculate(record)

        logger.info(
            "Payout processed: record=%s payout=%s %s -> %s txn=%s",
            record.id,
            payout.id,
            current.value,
            target,
            payout.transaction_id,
        )

    def _find_payout(self, record: LedgerRecord, payout_id: IdLike) -> Payout:
        wanted = _as_uuid(payout_id, PayoutNotFoundError)
        payout = next((p for p in record.payouts if p.id == wanted), None)
        if payout is None:
            raise PayoutNotFoundError(
                f"Payout {payout_id} not found on record {record.id}"
            )
        return payout

    def _commit(self, action: str) -> None:
        """Commit the session, translating persistence failures."""
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning("Concurrent modification during %s: %s", action, exc)
            raise ConcurrentModificationError(
                "Ledger record was modified concurrently; reload and retry"
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Storage failure during %s", action)
            raise StorageError(f"Could not persist ledger changes: {exc}") from exc


# ── Module helpers ───────────────────────────────────────────────────


def _period(period: str) -> str:
    try:
        return normalize_period(period)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc


def _target_status(status: Any) -> str:
    raw = status.value if hasattr(status, "value") else str(status)
    target = normalize_payout_status(raw)
    if target is None:
        raise InvalidPayoutTransitionError(f"Unknown payout status {raw!r}")
    return target


def _platform(name: str) -> str:
    try:
        return normalize_platform_name(name)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc


def _parse_amount(value: Any) -> Decimal:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidAmountError(f"Invalid amount {value!r}") from exc
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount {value!r}")
    return amount


def _validate_payout_amount(value: Any) -> Decimal:
    amount = _parse_amount(value)
    if amount <= ZERO:
        raise InvalidAmountError(f"Payout amount must be positive, got {value}")
    if amount != quantize_money(amount):
        raise InvalidAmountError(f"Payout amount must be in whole cents, got {value}")
    return quantize_money(amount)


def _validate_method(method: Any) -> str:
    raw = method.value if hasattr(method, "value") else str(method)
    canonical = normalize_payout_method(raw)
    if canonical is None:
        raise InvalidMethodError(
            f"Invalid payout method {raw!r}; expected paypal, bank_transfer or crypto"
        )
    return canonical


def _as_uuid(value: IdLike, error_cls: type) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise error_cls(f"Invalid identifier {value!r}") from exc


def _field(entry: Any, name: str, default: Any = ...) -> Any:
    if isinstance(entry, dict):
        value = entry.get(name, default)
    else:
        value = getattr(entry, name, default)
    if value is ...:
        raise InvalidInputError(f"Split entry is missing {name!r}")
    return value
