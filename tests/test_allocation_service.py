from decimal import Decimal

import pytest

from cashflow.errors import (
    AllocationExists,
    InvalidPercentage,
    InvalidRequest,
    NoBudgetCategories,
    NotFound,
)
from cashflow.models import BudgetAllocation
from cashflow.services import allocation_service
from cashflow.services.allocation_service import split_amount


@pytest.fixture
def fifty_thirty_twenty(ledger):
    return [
        ledger.category("Needs", "50.00", sort_order=0),
        ledger.category("Wants", "30.00", sort_order=1),
        ledger.category("Savings", "20.00", sort_order=2),
    ]


def _amounts(result):
    return [a.amount for a in result.allocations]


def test_split_follows_category_order(store, ledger, fifty_thirty_twenty):
    income = ledger.income("4201.00")

    result = allocation_service.generate_allocations(store, ledger.family.id, income.id)

    assert [a.category_name for a in result.allocations] == ["Needs", "Wants", "Savings"]
    assert _amounts(result) == [Decimal("2100.50"), Decimal("1260.30"), Decimal("840.20")]
    assert result.summary.total_allocated == Decimal("4201.00")
    assert result.summary.income_amount == Decimal("4201.00")
    assert result.summary.categories_allocated == 3
    assert result.summary.percentage_total == Decimal("100.00")
    assert result.summary.rounding_adjustment == Decimal("0.00")


def test_last_category_absorbs_the_rounding_gap(store, ledger):
    ledger.category("A", "33.33", sort_order=0)
    ledger.category("B", "33.33", sort_order=1)
    ledger.category("C", "33.34", sort_order=2)
    income = ledger.income("100.01")

    result = allocation_service.generate_allocations(store, ledger.family.id, income.id)

    assert _amounts(result) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.35")]
    assert sum(_amounts(result)) == Decimal("100.01")
    assert result.summary.rounding_adjustment == Decimal("0.01")


@pytest.mark.parametrize(
    "total", ["0.01", "0.05", "1.00", "99.99", "333.33", "1000.01", "98765.43"]
)
@pytest.mark.parametrize(
    "percentages", [["50", "30", "20"], ["33.33", "33.33", "33.34"], ["12.5", "87.5"]]
)
def test_split_always_sums_to_the_total(total, percentages):
    amounts, _ = split_amount(Decimal(total), [Decimal(p) for p in percentages])
    assert sum(amounts) == Decimal(total)
    assert all(a >= 0 for a in amounts)


def test_received_amount_is_what_gets_split(store, ledger, fifty_thirty_twenty):
    income = ledger.income("4000.00", actual="4201.00")
    result = allocation_service.generate_allocations(store, ledger.family.id, income.id)
    assert result.summary.total_allocated == Decimal("4201.00")


def test_overrides_replace_target_percentages(store, ledger, fifty_thirty_twenty):
    needs, wants, savings = fifty_thirty_twenty
    income = ledger.income("4201.00")

    result = allocation_service.generate_allocations(
        store, ledger.family.id, income.id,
        override_percentages={needs.id: "40", wants.id: 40},
    )

    assert [a.percentage for a in result.allocations] == [
        Decimal("40.00"), Decimal("40.00"), Decimal("20.00"),
    ]
    assert _amounts(result) == [Decimal("1680.40"), Decimal("1680.40"), Decimal("840.20")]
    assert savings.target_percentage == Decimal("20.00")


@pytest.mark.parametrize("pct", [0, -1, "100.01", 150, "abc", "33.333"])
def test_bad_override_is_rejected(store, ledger, db, fifty_thirty_twenty, pct):
    income = ledger.income()
    with pytest.raises(InvalidPercentage):
        allocation_service.generate_allocations(
            store, ledger.family.id, income.id,
            override_percentages={fifty_thirty_twenty[0].id: pct},
        )
    assert db.query(BudgetAllocation).count() == 0


def test_override_for_unknown_category_is_rejected(store, ledger, fifty_thirty_twenty):
    income = ledger.income()
    with pytest.raises(InvalidRequest):
        allocation_service.generate_allocations(
            store, ledger.family.id, income.id, override_percentages={"nope": 10}
        )


def test_excess_the_last_category_cannot_absorb_is_rejected(store, ledger, db, fifty_thirty_twenty):
    needs = fifty_thirty_twenty[0]
    income = ledger.income("4201.00")

    with pytest.raises(InvalidPercentage):
        allocation_service.generate_allocations(
            store, ledger.family.id, income.id, override_percentages={needs.id: 100}
        )
    assert db.query(BudgetAllocation).count() == 0


def test_family_without_active_categories(store, ledger):
    ledger.category("Old", "100", is_active=False)
    income = ledger.income()
    with pytest.raises(NoBudgetCategories):
        allocation_service.generate_allocations(store, ledger.family.id, income.id)


def test_inactive_categories_are_skipped(store, ledger):
    ledger.category("Needs", "60", sort_order=0)
    ledger.category("Retired", "25", sort_order=1, is_active=False)
    ledger.category("Savings", "40", sort_order=2)
    income = ledger.income("1000.00")

    result = allocation_service.generate_allocations(store, ledger.family.id, income.id)
    assert [a.category_name for a in result.allocations] == ["Needs", "Savings"]
    assert _amounts(result) == [Decimal("600.00"), Decimal("400.00")]


def test_second_generation_needs_an_explicit_delete(store, ledger, fifty_thirty_twenty):
    income = ledger.income("4201.00")
    allocation_service.generate_allocations(store, ledger.family.id, income.id)

    with pytest.raises(AllocationExists):
        allocation_service.generate_allocations(store, ledger.family.id, income.id)

    assert allocation_service.delete_allocations(store, ledger.family.id, income.id) == 3
    again = allocation_service.generate_allocations(store, ledger.family.id, income.id)
    assert again.summary.categories_allocated == 3


def test_get_allocations_returns_the_persisted_set(store, ledger, fifty_thirty_twenty):
    income = ledger.income("4201.00")
    generated = allocation_service.generate_allocations(store, ledger.family.id, income.id)

    fetched = allocation_service.get_allocations(store, ledger.family.id, income.id)
    assert [a.id for a in fetched.allocations] == [a.id for a in generated.allocations]
    assert fetched.summary == generated.summary


def test_unknown_or_cancelled_income(store, ledger, other_ledger, fifty_thirty_twenty):
    with pytest.raises(NotFound):
        allocation_service.generate_allocations(store, ledger.family.id, "missing")
    with pytest.raises(NotFound):
        allocation_service.generate_allocations(
            store, ledger.family.id, other_ledger.income().id
        )
    with pytest.raises(InvalidRequest):
        allocation_service.generate_allocations(
            store, ledger.family.id, ledger.income(status="cancelled").id
        )


def test_applied_percentages_match_what_is_stored(store, ledger, db, fifty_thirty_twenty):
    needs = fifty_thirty_twenty[0]
    income = ledger.income("1000.00")

    generated = allocation_service.generate_allocations(
        store, ledger.family.id, income.id, override_percentages={needs.id: "45.5"}
    )
    db.expire_all()
    fetched = allocation_service.get_allocations(store, ledger.family.id, income.id)

    assert [a.percentage for a in fetched.allocations] == [
        a.percentage for a in generated.allocations
    ]
    assert fetched.allocations[0].percentage == Decimal("45.50")
