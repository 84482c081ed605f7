from decimal import Decimal

import pytest

from cashflow.errors import InvalidPercentage, NotFound
from cashflow.schemas.budget import (
    BudgetCategoryCreate,
    BudgetCategoryUpdate,
    PercentageCandidate,
)
from cashflow.services import budget_category_service as service


def _create(store, ledger, name, pct, **extra):
    return service.create_category(
        store, ledger.family.id,
        BudgetCategoryCreate(name=name, target_percentage=Decimal(pct), **extra),
    )


def test_active_categories_may_not_exceed_one_hundred(store, ledger):
    _create(store, ledger, "Needs", "50")
    _create(store, ledger, "Wants", "30")

    with pytest.raises(InvalidPercentage):
        _create(store, ledger, "Savings", "20.01")

    savings = _create(store, ledger, "Savings", "20")
    assert savings.target_percentage == Decimal("20")
    inactive = _create(store, ledger, "Someday", "40", is_active=False)
    assert inactive.is_active is False


@pytest.mark.parametrize("pct", ["0", "-10", "100.5", "12.345"])
def test_percentage_must_be_in_range(store, ledger, pct):
    with pytest.raises(InvalidPercentage):
        _create(store, ledger, "Bad", pct)


def test_update_checks_the_total_without_counting_itself(store, ledger):
    needs = _create(store, ledger, "Needs", "50")
    _create(store, ledger, "Wants", "30")

    updated = service.update_category(
        store, ledger.family.id, needs.id,
        BudgetCategoryUpdate(target_percentage=Decimal("70")),
    )
    assert updated.target_percentage == Decimal("70")

    with pytest.raises(InvalidPercentage):
        service.update_category(
            store, ledger.family.id, needs.id,
            BudgetCategoryUpdate(target_percentage=Decimal("70.01")),
        )


def test_reactivation_is_checked_against_the_total(store, ledger):
    _create(store, ledger, "Needs", "80")
    old = _create(store, ledger, "Old", "30", is_active=False)

    with pytest.raises(InvalidPercentage):
        service.update_category(
            store, ledger.family.id, old.id, BudgetCategoryUpdate(is_active=True)
        )


def test_partial_update_leaves_other_fields(store, ledger):
    needs = _create(store, ledger, "Needs", "50", color="#00AA00", sort_order=2)
    updated = service.update_category(
        store, ledger.family.id, needs.id, BudgetCategoryUpdate(name="Essentials")
    )
    assert updated.name == "Essentials"
    assert updated.color == "#00AA00"
    assert updated.sort_order == 2


def test_update_of_unknown_category(store, ledger, other_ledger):
    foreign = other_ledger.category("Theirs", "10")
    with pytest.raises(NotFound):
        service.update_category(
            store, ledger.family.id, foreign.id, BudgetCategoryUpdate(name="Mine")
        )


def test_list_is_in_sort_order(store, ledger):
    ledger.category("Second", "10", sort_order=2)
    ledger.category("First", "10", sort_order=1)
    ledger.category("Hidden", "10", sort_order=0, is_active=False)

    names = [c.name for c in service.list_categories(store, ledger.family.id)]
    assert names == ["First", "Second"]
    everything = service.list_categories(store, ledger.family.id, include_inactive=True)
    assert [c.name for c in everything] == ["Hidden", "First", "Second"]


def test_validate_accepts_a_set_that_reaches_one_hundred(store, ledger):
    a = ledger.category("A", "50")
    b = ledger.category("B", "50")
    result = service.validate_percentages(
        store, ledger.family.id,
        [PercentageCandidate(id=a.id, target_percentage=Decimal("60")),
         PercentageCandidate(id=b.id, target_percentage=Decimal("40"))],
    )
    assert result.is_valid
    assert result.difference == Decimal("0")
    assert result.suggestions == []


def test_validate_suggests_a_proportional_rescale(store, ledger):
    a = ledger.category("A", "50")
    b = ledger.category("B", "30")
    result = service.validate_percentages(
        store, ledger.family.id,
        [PercentageCandidate(id=a.id, target_percentage=Decimal("60")),
         PercentageCandidate(id=b.id, target_percentage=Decimal("20"))],
    )
    assert not result.is_valid
    assert result.total_percentage == Decimal("80")
    assert result.difference == Decimal("-20")
    assert [s.suggested_percentage for s in result.suggestions] == [
        Decimal("75.00"), Decimal("25.00"),
    ]


def test_validate_splits_evenly_when_everything_is_zero(store, ledger):
    cats = [ledger.category(name, "10") for name in ("A", "B", "C", "D")]
    result = service.validate_percentages(
        store, ledger.family.id,
        [PercentageCandidate(id=c.id, target_percentage=Decimal("0")) for c in cats],
    )
    assert [s.suggested_percentage for s in result.suggestions] == [Decimal("25.00")] * 4


def test_validate_rejects_unknown_ids_and_out_of_range_values(store, ledger, other_ledger):
    mine = ledger.category("A", "50")
    theirs = other_ledger.category("B", "50")
    with pytest.raises(NotFound):
        service.validate_percentages(
            store, ledger.family.id,
            [PercentageCandidate(id=theirs.id, target_percentage=Decimal("50"))],
        )
    with pytest.raises(InvalidPercentage):
        service.validate_percentages(
            store, ledger.family.id,
            [PercentageCandidate(id=mine.id, target_percentage=Decimal("101"))],
        )


def test_null_active_flag_still_checks_the_total(store, ledger, db):
    needs = _create(store, ledger, "Needs", "50")
    _create(store, ledger, "Wants", "30")

    with pytest.raises(InvalidPercentage):
        service.update_category(
            store, ledger.family.id, needs.id,
            BudgetCategoryUpdate.model_validate({"isActive": None, "targetPercentage": "90"}),
        )

    db.refresh(needs)
    assert needs.is_active is True
    assert needs.target_percentage == Decimal("50.00")
    assert store.active_category_percentage_total(ledger.family.id) == Decimal("80.00")


def test_null_fields_are_left_unchanged(store, ledger):
    needs = _create(store, ledger, "Needs", "50", color="#00AA00")
    updated = service.update_category(
        store, ledger.family.id, needs.id,
        BudgetCategoryUpdate.model_validate({"name": None, "color": None, "isActive": None}),
    )
    assert updated.name == "Needs"
    assert updated.color == "#00AA00"
    assert updated.is_active is True
