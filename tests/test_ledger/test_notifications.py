"""Unit tests for payout notification messages (no database)."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

from royalty_ledger.models.enums import NotificationType
from royalty_ledger.services.ledger import notifications


class TestMessages:
    def test_requested(self) -> None:
        message = notifications.payout_requested_message(Decimal("60"), "USD", "paypal")
        assert message == "Payout request of 60.00 USD via paypal has been submitted."

    def test_completed(self) -> None:
        message = notifications.payout_completed_message(Decimal("60.00"), "EUR")
        assert message == "Payout of 60.00 EUR has been processed."

    def test_failed(self) -> None:
        message = notifications.payout_failed_message(Decimal("0.5"), "USD")
        assert message == "Payout of 0.50 USD has failed."


class TestEmit:
    def test_appends_unread_notification(self) -> None:
        record = SimpleNamespace(currency="USD", notifications=[])
        payout = SimpleNamespace(amount=Decimal("60.00"), method="crypto")

        notification = notifications.emit_payout_requested(record, payout)

        assert record.notifications == [notification]
        assert notification.type == NotificationType.PAYOUT_REQUESTED.value
        assert notification.read is False
        assert notification.created_at is not None
        assert "via crypto" in notification.message
