# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for the ledger, groups and settlements services.

- ValidationError:    bad input, rejected before any write
- NotFoundError:      missing entry / request / group / user
- AuthorizationError: actor is not the addressed recipient or owner
- ConsistencyError:   internal invariant broken (linkage, netting); always
                      fatal to the enclosing atomic unit
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""


class ValidationError(LedgerServiceError):
    """Raised when input is rejected before any write."""


class NotFoundError(LedgerServiceError):
    """Raised when a referenced record does not exist."""


class AuthorizationError(LedgerServiceError):
    """Raised when the actor may not perform the operation."""


class ConsistencyError(LedgerServiceError):
    """Raised when stored records violate a ledger invariant."""


class RequestAlreadyResolvedError(ValidationError):
    """Raised when a confirmed/rejected request is confirmed or rejected again."""
