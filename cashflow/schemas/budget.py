"""
Pydantic v2 schemas for budget categories and allocations.

Percentages in request bodies are plain ``Decimal`` values; the (0, 100]
range is enforced by the services and reported as ``InvalidPercentage``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from cashflow.schemas.common import CamelModel, Money


# ---------------------------------------------------------------------------
# Budget categories
# ---------------------------------------------------------------------------


class BudgetCategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    target_percentage: Decimal = Field(..., description="Share of income in (0, 100].")
    color: str | None = Field(default=None, max_length=7)
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True


class BudgetCategoryUpdate(CamelModel):
    """Partial update; only fields present in the body are written."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    target_percentage: Decimal | None = None
    color: str | None = Field(default=None, max_length=7)
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class BudgetCategoryResponse(CamelModel):
    id: str
    name: str
    target_percentage: Money
    color: str | None = None
    sort_order: int
    is_active: bool


class PercentageCandidate(CamelModel):
    id: str = Field(..., min_length=1)
    target_percentage: Decimal


class ValidatePercentagesRequest(CamelModel):
    """Proposed percentages for a set of the family's categories."""

    categories: list[PercentageCandidate] = Field(..., min_length=1)


class PercentageSuggestion(CamelModel):
    category_id: str
    current_percentage: Money
    suggested_percentage: Money


class ValidatePercentagesResponse(CamelModel):
    """Whether the proposed percentages reach 100 %, with a rescale hint.

    Attributes:
        is_valid: Total is within 0.01 of 100.
        total_percentage: Sum of the proposed percentages.
        difference: ``total_percentage - 100``.
        suggestions: Proportional rescale per category (empty when valid).
    """

    is_valid: bool
    total_percentage: Money
    difference: Money
    suggestions: list[PercentageSuggestion] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Budget allocations
# ---------------------------------------------------------------------------


class GenerateAllocationsRequest(CamelModel):
    """Body of ``POST /api/allocations/generate``.

    Attributes:
        income_event_id: Income event to split.
        override_percentages: Optional ``{categoryId: percentage}`` map that
            replaces the stored target percentage for this run only.
    """

    income_event_id: str = Field(..., min_length=1)
    override_percentages: dict[str, Decimal] | None = None


class BudgetAllocationResponse(CamelModel):
    id: str
    income_event_id: str
    budget_category_id: str
    category_name: str
    amount: Money
    percentage: Money
    created_at: datetime


class AllocationSummary(CamelModel):
    """Totals of a generated allocation set.

    Attributes:
        total_allocated: Sum of allocation amounts (equals ``income_amount``).
        income_amount: Effective income amount that was split.
        categories_allocated: Number of allocation rows.
        percentage_total: Sum of the percentages applied.
        rounding_adjustment: Amount the last category absorbed so the sum is exact.
    """

    total_allocated: Money
    income_amount: Money
    categories_allocated: int
    percentage_total: Money
    rounding_adjustment: Money


class AllocationSetResponse(CamelModel):
    allocations: list[BudgetAllocationResponse]
    summary: AllocationSummary
