"""Abstract base class for all payout gateways."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from royalty_ledger.models.payout import Payout


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of handing a payout to a payment provider.

    Attributes:
        success: Whether the provider accepted and executed the transfer.
        transaction_id: Provider reference for the transfer, when one exists.
        message: Human-readable detail, mostly useful on failure.
    """

    success: bool
    transaction_id: Optional[str] = None
    message: str = ""


class PaymentGateway(ABC):
    """Base interface that every payout method's gateway must implement.

    Each gateway is responsible for:
    1. Sending the payout amount to the provider behind its method
    2. Reporting success or failure with the provider's transaction reference
    3. Reporting provider errors as a failed ``GatewayResult`` rather than
       raising, so the payout can be finalized as failed
    """

    method: str

    @abstractmethod
    def send(self, payout: Payout, currency: str) -> GatewayResult:
        """Execute the transfer for ``payout``.

        Args:
            payout: The payout being paid out (amount, method, id).
            currency: ISO 4217 code of the ledger record.

        Returns:
            A ``GatewayResult`` describing the outcome.
        """
        pass
