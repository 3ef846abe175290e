"""Unit tests for the sandbox payment gateway (no database)."""

from __future__ import annotations

import re
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from royalty_ledger.services.payments.sandbox_gateway import SandboxGateway


def _payout(amount: str, method: str = "paypal") -> SimpleNamespace:
    return SimpleNamespace(id=uuid.uuid4(), amount=Decimal(amount), method=method)


class TestSandboxGateway:
    @pytest.mark.parametrize(
        "method,prefix",
        [("paypal", "PAYOUT"), ("bank_transfer", "TR"), ("crypto", "CRYPTO")],
    )
    def test_transaction_id_prefix(self, method: str, prefix: str) -> None:
        gateway = SandboxGateway(method, Decimal("1000.00"))

        result = gateway.send(_payout("60.00", method), "USD")

        assert result.success is True
        assert re.fullmatch(rf"{prefix}_[0-9A-F]{{16}}", result.transaction_id)

    def test_amount_at_limit_accepted(self) -> None:
        gateway = SandboxGateway("paypal", Decimal("100.00"))
        assert gateway.send(_payout("100.00"), "USD").success is True

    def test_amount_over_limit_declined(self) -> None:
        gateway = SandboxGateway("paypal", Decimal("100.00"))

        result = gateway.send(_payout("100.01"), "EUR")

        assert result.success is False
        assert result.transaction_id is None
        assert "exceeds sandbox limit" in result.message

    def test_transaction_ids_unique(self) -> None:
        gateway = SandboxGateway("crypto", Decimal("1000.00"))

        ids = {gateway.send(_payout("1.00", "crypto"), "USD").transaction_id for _ in range(5)}

        assert len(ids) == 5
