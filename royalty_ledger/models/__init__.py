"""SQLAlchemy models for the royalty ledger."""

from royalty_ledger.models.ledger_record import LedgerRecord
from royalty_ledger.models.platform_earning import PlatformEarning
from royalty_ledger.models.split import RevenueSplit
from royalty_ledger.models.payout import Payout
from royalty_ledger.models.notification import LedgerNotification

__all__ = [
    "LedgerRecord",
    "PlatformEarning",
    "RevenueSplit",
    "Payout",
    "LedgerNotification",
]
