"""Sandbox gateway used in development and tests.

Accepts any payout up to a configured limit and answers with a generated
transaction id, the way the real providers answer with a batch or
transfer id.  Larger payouts are declined.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from royalty_ledger.core.logging import get_logger
from royalty_ledger.models.payout import Payout
from royalty_ledger.services.payments.base_gateway import GatewayResult, PaymentGateway

logger = get_logger(__name__)

_PREFIXES = {
    "paypal": "PAYOUT",
    "bank_transfer": "TR",
    "crypto": "CRYPTO",
}


class SandboxGateway(PaymentGateway):
    """Pretend provider for one payout method."""

    def __init__(self, method: str, limit: Decimal) -> None:
        self.method = method
        self.limit = limit

    def send(self, payout: Payout, currency: str) -> GatewayResult:
        if Decimal(payout.amount) > self.limit:
            logger.warning(
                "Sandbox declined payout=%s amount=%s limit=%s",
                payout.id,
                payout.amount,
                self.limit,
            )
            return GatewayResult(
                success=False,
                message=f"Amount {payout.amount} {currency} exceeds sandbox limit {self.limit}",
            )

        prefix = _PREFIXES.get(self.method, "TX")
        transaction_id = f"{prefix}_{uuid.uuid4().hex[:16].upper()}"
        logger.info(
            "Sandbox sent payout=%s amount=%s %s txn=%s",
            payout.id,
            payout.amount,
            currency,
            transaction_id,
        )
        return GatewayResult(success=True, transaction_id=transaction_id)
