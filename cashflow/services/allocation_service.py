"""
Budget allocation service layer.

Splits an income event's effective amount across the family's active budget
categories and persists one ``BudgetAllocation`` per category as a single
atomic batch.

Rounding policy
---------------
Each category amount is ``round2(pct / 100 * effective)`` rounded half-up on
its own.  Whatever gap remains between the rounded sum and the effective
amount is absorbed by the **last** category in sort order, so the rows always
sum to the income amount to the cent.  When the applied percentages do not
total 100 the gap is larger than rounding noise; that case is logged as a
warning and reported in ``summary.rounding_adjustment``.  A configuration the
last category cannot absorb (it would go negative) is rejected with
``InvalidPercentage``.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from cashflow.errors import (
    AllocationExists,
    InvalidPercentage,
    InvalidRequest,
    NoBudgetCategories,
    NotFound,
)
from cashflow.models import BudgetAllocation, BudgetCategory
from cashflow.schemas.budget import (
    AllocationSetResponse,
    AllocationSummary,
    BudgetAllocationResponse,
)
from cashflow.services import audit_service
from cashflow.store import LedgerStore
from cashflow.utils.constants import HUNDRED, PERCENTAGE_EPSILON, ZERO
from cashflow.utils.money import parse_percentage, round2

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def split_amount(
    total: Decimal, percentages: list[Decimal]
) -> tuple[list[Decimal], Decimal]:
    """Split *total* by *percentages*; the last share absorbs the remainder.

    Returns:
        ``(amounts, adjustment)`` where ``sum(amounts) == total`` and
        *adjustment* is what was added to (or taken from) the last share.
    """
    amounts = [round2(pct / HUNDRED * total) for pct in percentages]
    adjustment = total - sum(amounts, ZERO)
    if amounts:
        amounts[-1] += adjustment
    return amounts, adjustment


def _to_response(row: BudgetAllocation, category: BudgetCategory) -> BudgetAllocationResponse:
    return BudgetAllocationResponse(
        id=row.id,
        income_event_id=row.income_event_id,
        budget_category_id=row.budget_category_id,
        category_name=category.name,
        amount=Decimal(row.amount),
        percentage=Decimal(row.percentage),
        created_at=row.created_at,
    )


def _summary(rows: list[BudgetAllocation], income_amount: Decimal) -> AllocationSummary:
    total = sum((Decimal(r.amount) for r in rows), ZERO)
    pct_total = sum((Decimal(r.percentage) for r in rows), ZERO)
    adjustment = ZERO
    if rows:
        last = rows[-1]
        adjustment = Decimal(last.amount) - round2(Decimal(last.percentage) / HUNDRED * income_amount)
    return AllocationSummary(
        total_allocated=total,
        income_amount=income_amount,
        categories_allocated=len(rows),
        percentage_total=pct_total,
        rounding_adjustment=adjustment,
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def generate_allocations(
    store: LedgerStore,
    family_id: str,
    income_event_id: str,
    override_percentages: dict[str, object] | None = None,
    actor_id: str | None = None,
) -> AllocationSetResponse:
    """Split an income event across the family's active budget categories.

    Args:
        store: Ledger store bound to the request session.
        family_id: Caller's family.
        income_event_id: Income event to split.
        override_percentages: ``{category_id: pct}`` replacing the stored
            target percentage for this run.
        actor_id: FamilyMember id for the audit trail.

    Returns:
        The persisted allocations (category sort order) and a summary.

    Raises:
        InvalidPercentage: An override is outside (0, 100], or the applied
                           percentages leave the last category negative.
        NotFound: Unknown income event or another family's.
        InvalidRequest: Cancelled income event, or an override names a
                        category that is not an active category of the family.
        AllocationExists: The income event already has allocations.
        NoBudgetCategories: The family has no active categories.
    """
    overrides: dict[str, Decimal] = {
        category_id: parse_percentage(pct, f"overridePercentages[{category_id}]")
        for category_id, pct in (override_percentages or {}).items()
    }

    with store.atomic():
        income = store.get_income_event(family_id, income_event_id, lock=True)
        if income is None:
            raise NotFound(f"Income event {income_event_id} not found.")
        if income.status == "cancelled":
            raise InvalidRequest(f"Income event '{income.name}' is cancelled.")
        if store.count_allocations_for_income(income.id) > 0:
            raise AllocationExists(
                f"Income event '{income.name}' is already allocated; "
                "delete its allocations before generating again."
            )

        categories = store.categories(family_id)
        if not categories:
            raise NoBudgetCategories("No active budget categories found for this family.")

        unknown = set(overrides) - {c.id for c in categories}
        if unknown:
            raise InvalidRequest(
                f"Override percentages reference unknown or inactive categories: {sorted(unknown)}."
            )

        effective = income.effective_amount
        applied = [overrides.get(c.id, Decimal(c.target_percentage)) for c in categories]
        amounts, adjustment = split_amount(effective, applied)

        if amounts[-1] < 0:
            raise InvalidPercentage(
                f"Applied percentages total {sum(applied, ZERO)}%; the last category "
                f"'{categories[-1].name}' cannot absorb the excess."
            )
        pct_total = sum(applied, ZERO)
        if abs(pct_total - HUNDRED) >= PERCENTAGE_EPSILON:
            logger.warning(
                "generate_allocations: income=%s percentages total %s%%; "
                "last category '%s' absorbs %s",
                income.id, pct_total, categories[-1].name, adjustment,
            )

        rows = [
            BudgetAllocation(
                income_event_id=income.id,
                budget_category_id=category.id,
                amount=amount,
                percentage=pct,
            )
            for category, amount, pct in zip(categories, amounts, applied)
        ]
        store.add_all(rows)
        store.flush()

        audit_service.record(
            store, family_id, actor_id, "create", "BudgetAllocation", income.id,
            new_values={
                "incomeEventId": income.id,
                "totalAmount": effective,
                "categoriesCount": len(rows),
            },
        )

    logger.info(
        "generate_allocations: income=%s amount=%s categories=%d adjustment=%s",
        income.id, effective, len(rows), adjustment,
    )
    return AllocationSetResponse(
        allocations=[_to_response(r, c) for r, c in zip(rows, categories)],
        summary=_summary(rows, effective),
    )


def get_allocations(
    store: LedgerStore, family_id: str, income_event_id: str
) -> AllocationSetResponse:
    """Return an income event's allocations in category sort order.

    Raises:
        NotFound: Unknown income event or another family's.
    """
    income = store.get_income_event(family_id, income_event_id)
    if income is None:
        raise NotFound(f"Income event {income_event_id} not found.")

    rows = store.allocations_for_income(income.id)
    return AllocationSetResponse(
        allocations=[_to_response(r, r.budget_category) for r in rows],
        summary=_summary(rows, income.effective_amount),
    )


def delete_allocations(
    store: LedgerStore, family_id: str, income_event_id: str, actor_id: str | None = None
) -> int:
    """Remove the full allocation set of an income event.

    Returns:
        Number of rows deleted (0 when the event had none).

    Raises:
        NotFound: Unknown income event or another family's.
    """
    with store.atomic():
        income = store.get_income_event(family_id, income_event_id, lock=True)
        if income is None:
            raise NotFound(f"Income event {income_event_id} not found.")

        rows = store.allocations_for_income(income.id)
        for row in rows:
            store.delete(row)
        if rows:
            audit_service.record(
                store, family_id, actor_id, "delete", "BudgetAllocation", income.id,
                old_values={"categoriesCount": len(rows)},
            )

    logger.info("delete_allocations: income=%s deleted=%d", income_event_id, len(rows))
    return len(rows)
