# ledger/api/errors.py

"""
DOMAIN ERROR -> HTTP RESPONSE

Services raise ledger.services.exceptions; views translate them here so every
endpoint answers the same way:

- ValidationError    -> 400
- AuthorizationError -> 403
- NotFoundError      -> 404
- ConsistencyError   -> 409 (the atomic unit has already rolled back)
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from ledger.services.exceptions import (
    AuthorizationError,
    ConsistencyError,
    LedgerServiceError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger("ledger")

STATUS_FOR_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConsistencyError, status.HTTP_409_CONFLICT),
)


def service_error_response(exc: LedgerServiceError) -> Response:
    for error_cls, code in STATUS_FOR_ERROR:
        if isinstance(exc, error_cls):
            break
    else:
        code = status.HTTP_400_BAD_REQUEST

    if code == status.HTTP_409_CONFLICT:
        logger.error("Ledger consistency failure", extra={"error": str(exc)})

    return Response({"detail": str(exc)}, status=code)
