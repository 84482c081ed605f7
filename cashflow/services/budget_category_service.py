"""
Budget category service layer.

This is where the family-level rule "active target percentages sum to
at most 100 %" is enforced, using a SUM aggregate scoped to the family at
category create/update time.  The allocator never re-checks it.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from cashflow.errors import InvalidPercentage, NotFound
from cashflow.models import BudgetCategory
from cashflow.schemas.budget import (
    BudgetCategoryCreate,
    BudgetCategoryUpdate,
    PercentageCandidate,
    PercentageSuggestion,
    ValidatePercentagesResponse,
)
from cashflow.services import audit_service
from cashflow.store import LedgerStore
from cashflow.utils.constants import HUNDRED, PERCENTAGE_EPSILON, ZERO
from cashflow.utils.money import parse_percentage, round2, to_decimal

logger = logging.getLogger(__name__)


def _check_family_total(
    store: LedgerStore,
    family_id: str,
    percentage: Decimal,
    exclude_category_id: str | None = None,
) -> None:
    others = store.active_category_percentage_total(family_id, exclude_category_id)
    if others + percentage > HUNDRED:
        raise InvalidPercentage(
            f"Active budget categories would total {others + percentage}%; "
            f"only {HUNDRED - others}% is still available."
        )


def list_categories(
    store: LedgerStore, family_id: str, include_inactive: bool = False
) -> list[BudgetCategory]:
    return store.categories(family_id, include_inactive=include_inactive)


def create_category(
    store: LedgerStore, family_id: str, data: BudgetCategoryCreate, actor_id: str | None = None
) -> BudgetCategory:
    """Create a budget category.

    Raises:
        InvalidPercentage: Percentage outside (0, 100], or the family's
                           active categories would exceed 100 % in total.
    """
    percentage = parse_percentage(data.target_percentage, "targetPercentage")

    with store.atomic():
        if data.is_active:
            _check_family_total(store, family_id, percentage)

        category = BudgetCategory(
            family_id=family_id,
            name=data.name,
            target_percentage=percentage,
            color=data.color,
            sort_order=data.sort_order,
            is_active=data.is_active,
        )
        store.add(category)
        store.flush()
        audit_service.record(
            store, family_id, actor_id, "create", "BudgetCategory", category.id,
            new_values={"name": category.name, "targetPercentage": percentage},
        )

    logger.info(
        "create_category: id=%s name='%s' pct=%s", category.id, category.name, percentage
    )
    return category


def update_category(
    store: LedgerStore,
    family_id: str,
    category_id: str,
    data: BudgetCategoryUpdate,
    actor_id: str | None = None,
) -> BudgetCategory:
    """Apply a partial update to a budget category.

    Only fields explicitly present in the payload are written.

    Raises:
        NotFound: Unknown category or another family's.
        InvalidPercentage: Same rules as ``create_category``.
    """
    # An explicit null means "leave unchanged", same as an omitted field.
    update_data = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if "target_percentage" in update_data:
        update_data["target_percentage"] = parse_percentage(
            update_data["target_percentage"], "targetPercentage"
        )

    with store.atomic():
        category = store.get_category(family_id, category_id)
        if category is None:
            raise NotFound(f"Budget category {category_id} not found.")

        percentage = update_data.get("target_percentage") or Decimal(category.target_percentage)
        is_active = update_data.get("is_active", category.is_active)
        if is_active:
            _check_family_total(store, family_id, percentage, exclude_category_id=category.id)

        old_values = {field: getattr(category, field) for field in update_data}
        for field, value in update_data.items():
            setattr(category, field, value)

        audit_service.record(
            store, family_id, actor_id, "update", "BudgetCategory", category.id,
            old_values=old_values, new_values=update_data,
        )

    logger.info("update_category: id=%s fields=%s", category_id, list(update_data.keys()))
    return category


def validate_percentages(
    store: LedgerStore, family_id: str, candidates: list[PercentageCandidate]
) -> ValidatePercentagesResponse:
    """Check whether a proposed set of percentages reaches 100 %.

    When it does not, every category gets a proportionally rescaled
    suggestion (an equal split if all proposals are zero).

    Raises:
        NotFound: A category id is unknown or belongs to another family.
        InvalidPercentage: A proposal is outside [0, 100].
    """
    known = {c.id for c in store.categories(family_id, include_inactive=True)}
    proposals: list[tuple[str, Decimal]] = []
    for candidate in candidates:
        if candidate.id not in known:
            raise NotFound(f"Budget category {candidate.id} not found.")
        pct = to_decimal(candidate.target_percentage)
        if not pct.is_finite() or pct < 0 or pct > HUNDRED:
            raise InvalidPercentage(
                f"Target percentage for category {candidate.id} must be between 0 and 100."
            )
        proposals.append((candidate.id, pct))

    total = sum((pct for _, pct in proposals), ZERO)
    difference = total - HUNDRED
    is_valid = abs(difference) < PERCENTAGE_EPSILON

    suggestions: list[PercentageSuggestion] = []
    if not is_valid:
        for category_id, pct in proposals:
            if total > 0:
                suggested = round2(pct * HUNDRED / total)
            else:
                suggested = round2(HUNDRED / len(proposals))
            suggestions.append(
                PercentageSuggestion(
                    category_id=category_id,
                    current_percentage=pct,
                    suggested_percentage=suggested,
                )
            )

    logger.debug("validate_percentages: total=%s valid=%s", total, is_valid)
    return ValidatePercentagesResponse(
        is_valid=is_valid,
        total_percentage=total,
        difference=difference,
        suggestions=suggestions,
    )
