# ledger/models/__init__.py

"""
LEDGER MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Models never import services.
"""

from ledger.models.confirmation_request import ConfirmationRequest
from ledger.models.entry import LedgerEntry, LedgerEntryQuerySet
from ledger.models.pair_lock import DebtPairLock

__all__ = [
    "LedgerEntry",
    "LedgerEntryQuerySet",
    "ConfirmationRequest",
    "DebtPairLock",
]
