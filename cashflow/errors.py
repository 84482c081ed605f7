"""
Domain error hierarchy for the cash-flow engine.

Services raise these instead of ``HTTPException`` so that they can be used
from jobs and scripts as well as from the API.  ``main.py`` maps every
``LedgerError`` to a JSON envelope ``{"error": kind, "message": text}`` using
the ``status_code`` declared on the class.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by the engine."""

    kind: str = "LedgerError"
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class NotFound(LedgerError):
    """Referenced entity is missing or belongs to another family."""

    kind = "NotFound"
    status_code = 404


class InvalidAmount(LedgerError):
    """Amount is non-positive, non-finite, or has more than 2 decimals."""

    kind = "InvalidAmount"
    status_code = 400


class InvalidPercentage(LedgerError):
    kind = "InvalidPercentage"
    status_code = 400


class OverAllocation(LedgerError):
    """Mutation would push attributions past an income or payment amount."""

    kind = "OverAllocation"
    status_code = 409


class NoBudgetCategories(LedgerError):
    kind = "NoBudgetCategories"
    status_code = 422


class InvalidRequest(LedgerError):
    kind = "InvalidRequest"
    status_code = 400


class AllocationExists(InvalidRequest):
    """Allocations already exist for the income event; delete them first."""

    kind = "AllocationExists"
    status_code = 409


class StoreError(LedgerError):
    """The ledger store failed mid-operation; the unit of work was rolled back.

    Not a domain error: callers should retry later.
    """

    kind = "InternalError"
    status_code = 500
