"""
Pydantic v2 schemas for the transaction matcher.

The matcher only proposes pairings; ``MatchConfirmRequest`` is the separate,
explicit step that commits one of them.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import Field

from cashflow.schemas.common import CamelModel, Money
from cashflow.schemas.attribution import AttributionResponse
from cashflow.utils.constants import MAX_DATE_TOLERANCE_DAYS


class MatchRequest(CamelModel):
    """Body of ``POST /api/match``.

    Tolerances default to the engine-wide settings when omitted.

    Attributes:
        from_date: Earliest transaction date (inclusive).
        to_date: Latest transaction date (inclusive).
        account_ids: Subset of the family's bank accounts; all when omitted.
        amount_tolerance: Allowed amount gap as a fraction of the payment amount.
        date_tolerance: Allowed distance in days between posting and due date.
        include_pending: Also consider pending bank lines.
        include_matched: Also consider lines already matched to a payment.
    """

    from_date: dt.date | None = None
    to_date: dt.date | None = None
    account_ids: list[str] | None = None
    amount_tolerance: Decimal | None = None
    date_tolerance: int | None = Field(default=None, le=MAX_DATE_TOLERANCE_DAYS)
    include_pending: bool = False
    include_matched: bool = False


class MatchCandidateResponse(CamelModel):
    transaction_id: str
    payment_id: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    match_type: str
    transaction_date: dt.date
    transaction_amount: Money
    payment_amount: Money
    due_date: dt.date
    amount_difference: Money
    days_apart: int


class MatchSummary(CamelModel):
    total_transactions: int
    total_matches: int
    high_confidence_matches: int


class MatchResponse(CamelModel):
    matches: list[MatchCandidateResponse]
    summary: MatchSummary


class MatchConfirmRequest(CamelModel):
    """Body of ``POST /api/match/confirm``.

    When ``income_event_id`` is given, the payment's unattributed balance is
    attributed to that income event as an ``automatic`` attribution.
    """

    transaction_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    income_event_id: str | None = None


class MatchConfirmResponse(CamelModel):
    transaction_id: str
    payment_id: str
    payment_status: str
    paid_amount: Money
    attribution: AttributionResponse | None = None
