"""
Pydantic v2 schemas for the attribution ledger endpoints.

Request amounts are typed loosely (plain ``Decimal``) on purpose: range and
precision checks live in ``attribution_service`` so that they surface as
``InvalidAmount`` domain errors instead of generic 422 responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field

from cashflow.schemas.common import CamelModel, Money


class AttributionCreate(CamelModel):
    """Body of ``POST /api/attributions``."""

    income_event_id: str = Field(..., min_length=1, description="Income event funding the payment.")
    payment_id: str = Field(..., min_length=1, description="Payment being funded.")
    amount: Decimal = Field(..., description="Attributed amount, > 0 with at most 2 decimals.")
    type: Literal["manual", "automatic"] = Field(
        default="manual", description="How the attribution was created."
    )


class AttributionResponse(CamelModel):
    """A single payment attribution."""

    id: str
    income_event_id: str
    payment_id: str
    amount: Money
    type: str = Field(..., validation_alias="attribution_type")
    created_by: str
    created_at: datetime


class AttributionListResponse(CamelModel):
    """Attributions of one income event with freshly recomputed totals.

    Attributes:
        attributions: Newest first.
        total_attributed: SUM of the listed amounts.
        remaining_amount: Effective income amount minus ``total_attributed``.
    """

    income_event_id: str
    attributions: list[AttributionResponse]
    total_attributed: Money
    remaining_amount: Money
