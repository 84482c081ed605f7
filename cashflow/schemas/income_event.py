"""Pydantic v2 schemas for income event reads and the mark-received transition."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import Field

from cashflow.schemas.common import CamelModel, Money


class IncomeEventResponse(CamelModel):
    """Income event with its derived totals.

    Attributes:
        amount: Scheduled amount.
        effective_amount: Actual amount once received, else scheduled.
        allocated_amount: Sum of attributions.
        remaining_amount: ``effective_amount - allocated_amount``.
    """

    id: str
    name: str
    amount: Money
    scheduled_date: dt.date
    actual_date: dt.date | None = None
    actual_amount: Money | None = None
    effective_amount: Money
    allocated_amount: Money
    remaining_amount: Money
    status: str


class MarkReceivedRequest(CamelModel):
    """Body of ``POST /api/income-events/{id}/mark-received``.

    Both fields are optional: the scheduled amount and today's date are used
    when omitted.
    """

    actual_amount: Decimal | None = Field(default=None, description="Amount received.")
    actual_date: dt.date | None = Field(default=None, description="Date received (ISO 8601).")
