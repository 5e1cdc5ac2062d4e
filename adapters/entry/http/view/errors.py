# adapters/entry/http/view/errors.py
from __future__ import annotations

import logging

from fastapi import HTTPException

from core.services.exceptions import (
    ContractRevert,
    TransactionBudgetExceededError,
    TransactionRevertedError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: Exception, action: str) -> HTTPException:
    """
    Map use-case failures to HTTP errors.

    Named contract errors are client errors (400) and keep their name and
    arguments so callers can match on them.
    """
    if isinstance(exc, HTTPException):
        return exc

    if isinstance(exc, TransactionRevertedError):
        err = exc.error.as_dict() if exc.error is not None else {"error": "Reverted", "args": []}
        return HTTPException(
            status_code=400,
            detail={**err, "message": str(exc), "tx": exc.tx_hash, "receipt": exc.receipt},
        )

    if isinstance(exc, ContractRevert):
        return HTTPException(status_code=400, detail={**exc.as_dict(), "message": str(exc), "tx": None})

    if isinstance(exc, TransactionBudgetExceededError):
        return HTTPException(
            status_code=400,
            detail={"error": "TransactionBudgetExceeded", "message": str(exc), **exc.as_dict()},
        )

    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))

    logger.exception("Failed to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {exc}")
