import datetime
from decimal import Decimal

import pytest

from cashflow.config import get_settings
from cashflow.errors import InvalidRequest, NotFound, OverAllocation
from cashflow.services import matching_service
from cashflow.services.matching_service import MatchOptions, PairFacts, evaluate

from tests.conftest import TODAY


def days(n):
    return TODAY + datetime.timedelta(days=n)


def _run(store, ledger, **options):
    return matching_service.match(store, ledger.family.id, MatchOptions(**options))


def _pair(result, txn, payment):
    hits = [
        m for m in result.matches
        if m.transaction_id == txn.id and m.payment_id == payment.id
    ]
    assert len(hits) <= 1
    return hits[0] if hits else None


# ---------------------------------------------------------------------------
# Rule chain
# ---------------------------------------------------------------------------


def _facts(diff="0", tolerance="15.00", days_apart=0, date_tolerance=3, merchant=False):
    return PairFacts(
        amount_diff=Decimal(diff),
        tolerance_amount=Decimal(tolerance),
        days_apart=days_apart,
        date_tolerance=date_tolerance,
        merchant_hit=merchant,
    )


def test_exact_amount_wins_over_every_other_rule():
    assert evaluate(_facts("0.00", merchant=True)) == ("exact_amount", 1.0)
    assert evaluate(_facts("0.004", days_apart=3)) == ("exact_amount", 1.0)


def test_merchant_match_requires_the_amount_tolerance():
    assert evaluate(_facts("0.06", "0.16", merchant=True)) == ("merchant_match", 0.9)
    assert evaluate(_facts("5.00", "0.16", days_apart=1, merchant=True))[0] == "date_range"


def test_close_amount_scales_with_the_difference():
    at_zero_tolerance_edge = evaluate(_facts("15.00", "15.00"))
    near = evaluate(_facts("0.01", "15.00"))
    assert at_zero_tolerance_edge == ("close_amount", 0.5)
    assert near[0] == "close_amount"
    assert 0.5 < near[1] <= 0.85
    assert evaluate(_facts("0.50", "1.25")) == ("close_amount", 0.71)


def test_date_range_decays_with_distance():
    same_day = evaluate(_facts("100", "1", days_apart=0))
    edge = evaluate(_facts("100", "1", days_apart=3))
    assert same_day == ("date_range", 0.5)
    assert edge == ("date_range", 0.3)
    assert evaluate(_facts("100", "1", days_apart=2)) == ("date_range", 0.3667)


def test_no_rule_applies_outside_both_tolerances():
    assert evaluate(_facts("100", "1", days_apart=4)) is None


# ---------------------------------------------------------------------------
# match()
# ---------------------------------------------------------------------------


def test_exact_payment_is_proposed_with_full_confidence(store, ledger):
    account = ledger.account()
    rent = ledger.payment("Rent", "1500.00", due_date=TODAY)
    txn = ledger.transaction(account, "-1500.00", date=days(1), description="ACH LANDLORD")

    result = _run(store, ledger)

    hit = _pair(result, txn, rent)
    assert hit.match_type == "exact_amount"
    assert hit.confidence == 1.0
    assert hit.days_apart == 1
    assert hit.amount_difference == Decimal("0.00")
    assert result.summary.total_transactions == 1
    assert result.summary.total_matches == 1
    assert result.summary.high_confidence_matches == 1


def test_close_amount_within_one_percent(store, ledger):
    account = ledger.account()
    electric = ledger.payment("Electric", "125.00", due_date=TODAY)
    txn = ledger.transaction(account, "-124.50", date=TODAY, description="POWER CO AUTOPAY")

    hit = _pair(_run(store, ledger), txn, electric)
    assert hit.match_type == "close_amount"
    assert 0.5 < hit.confidence < 0.85
    assert hit.confidence == 0.71


def test_payee_found_in_merchant_or_description(store, ledger):
    account = ledger.account()
    netflix = ledger.payment("Netflix", "15.99", due_date=TODAY)
    spotify = ledger.payment("Spotify", "10.99", due_date=days(10))
    by_merchant = ledger.transaction(account, "-16.05", date=TODAY, merchant="NETFLIX.COM")
    by_description = ledger.transaction(
        account, "-11.02", date=days(10), description="Card purchase spotify ab"
    )

    result = _run(store, ledger)
    assert _pair(result, by_merchant, netflix).match_type == "merchant_match"
    assert _pair(result, by_description, spotify).match_type == "merchant_match"
    assert result.summary.high_confidence_matches == 2


def test_date_only_proposal_is_low_confidence(store, ledger):
    account = ledger.account()
    rent = ledger.payment("Rent", "1500.00", due_date=TODAY)
    coffee = ledger.transaction(account, "-4.50", date=days(2), description="COFFEE")

    result = _run(store, ledger)
    hit = _pair(result, coffee, rent)
    assert hit.match_type == "date_range"
    assert 0.3 <= hit.confidence <= 0.5
    assert result.summary.high_confidence_matches == 0


def test_transactions_outside_the_date_tolerance_are_not_paired(store, ledger):
    account = ledger.account()
    ledger.payment("Rent", "1500.00", due_date=TODAY)
    ledger.transaction(account, "-1500.00", date=days(4))

    result = _run(store, ledger)
    assert result.matches == []
    assert result.summary.total_transactions == 1

    wider = _run(store, ledger, date_tolerance=5)
    assert wider.matches[0].match_type == "exact_amount"


def test_only_open_outflows_and_unpaid_payments_are_considered(store, ledger):
    account = ledger.account()
    rent = ledger.payment("Rent", "1500.00", due_date=TODAY)
    ledger.payment("Old rent", "1500.00", due_date=TODAY, status="paid")
    ledger.payment("Void", "1500.00", due_date=TODAY, status="cancelled")
    overdue = ledger.payment("Water", "40.00", due_date=days(-1), status="overdue")

    ledger.transaction(account, "1500.00", date=TODAY, description="PAYROLL")
    pending = ledger.transaction(account, "-1500.00", date=TODAY, pending=True)
    ledger.transaction(account, "-40.00", date=TODAY, matched_payment_id=rent.id)

    result = _run(store, ledger)
    assert result.matches == []
    assert result.summary.total_transactions == 0

    with_pending = _run(store, ledger, include_pending=True)
    assert _pair(with_pending, pending, rent).match_type == "exact_amount"

    with_matched = _run(store, ledger, include_matched=True)
    assert {m.payment_id for m in with_matched.matches} >= {overdue.id}


def test_results_are_ranked_and_deterministic(store, ledger):
    account = ledger.account()
    ledger.payment("Rent", "1500.00", due_date=TODAY)
    ledger.payment("Electric", "125.00", due_date=days(1))
    ledger.payment("Netflix", "15.99", due_date=days(2))
    ledger.transaction(account, "-1500.00", date=TODAY)
    ledger.transaction(account, "-124.50", date=days(1))
    ledger.transaction(account, "-16.05", date=days(2), merchant="Netflix")
    ledger.transaction(account, "-3.00", date=days(1), description="PARKING")

    first = _run(store, ledger)
    second = _run(store, ledger)

    assert first == second
    keys = [(-m.confidence, m.transaction_date) for m in first.matches]
    assert keys == sorted(keys)
    assert [m.match_type for m in first.matches[:3]] == [
        "exact_amount", "merchant_match", "close_amount",
    ]
    assert first.summary.total_matches == len(first.matches)


def test_window_and_account_filters(store, ledger):
    checking = ledger.account("Checking")
    savings = ledger.account("Savings")
    ledger.payment("Rent", "1500.00", due_date=TODAY)
    in_checking = ledger.transaction(checking, "-1500.00", date=TODAY)
    in_savings = ledger.transaction(savings, "-1500.00", date=TODAY)

    only_savings = _run(store, ledger, account_ids=(savings.id,))
    assert [m.transaction_id for m in only_savings.matches] == [in_savings.id]

    later = _run(store, ledger, from_date=days(1), to_date=days(30))
    assert later.summary.total_transactions == 0

    both = _run(store, ledger, from_date=TODAY, to_date=TODAY)
    assert {m.transaction_id for m in both.matches} == {in_checking.id, in_savings.id}


def test_invalid_requests(store, ledger, other_ledger):
    foreign = other_ledger.account()
    with pytest.raises(InvalidRequest):
        _run(store, ledger, from_date=days(5), to_date=TODAY)
    with pytest.raises(InvalidRequest):
        _run(store, ledger, account_ids=(foreign.id,))
    with pytest.raises(InvalidRequest):
        _run(store, ledger, amount_tolerance=Decimal("-0.01"))
    with pytest.raises(InvalidRequest):
        _run(store, ledger, date_tolerance=-1)
    with pytest.raises(InvalidRequest):
        _run(store, ledger, date_tolerance=367)
    with pytest.raises(InvalidRequest):
        _run(store, ledger, date_tolerance=10**9)


def test_family_without_accounts_gets_an_empty_result(store, ledger):
    ledger.payment()
    result = matching_service.match(store, ledger.family.id)
    assert result.matches == []
    assert result.summary.total_transactions == 0
    assert result.summary.total_matches == 0


def test_transactions_are_streamed_in_batches(store, ledger, monkeypatch):
    monkeypatch.setattr(get_settings(), "MATCH_BATCH_SIZE", 2)
    account = ledger.account()
    ledger.payment("Rent", "1500.00", due_date=TODAY)
    for offset in range(5):
        ledger.transaction(account, "-1500.00", date=days(offset % 2))

    result = _run(store, ledger)
    assert result.summary.total_transactions == 5
    assert result.summary.total_matches == 5
    assert len({m.transaction_id for m in result.matches}) == 5


# ---------------------------------------------------------------------------
# confirm_match()
# ---------------------------------------------------------------------------


def test_confirm_settles_payment_and_funds_the_balance(store, ledger):
    account = ledger.account()
    income = ledger.income("5000.00")
    rent = ledger.payment("Rent", "1500.00", due_date=TODAY)
    txn = ledger.transaction(account, "-1500.00", date=days(1))

    confirmed = matching_service.confirm_match(
        store, ledger.family.id, txn.id, rent.id, income_event_id=income.id, actor_id="m-1"
    )

    assert confirmed.payment_status == "paid"
    assert confirmed.paid_amount == Decimal("1500.00")
    assert confirmed.attribution.type == "automatic"
    assert confirmed.attribution.amount == Decimal("1500.00")
    assert rent.paid_date == days(1)
    assert txn.matched_payment_id == rent.id
    assert income.remaining_amount == Decimal("3500.00")

    assert _run(store, ledger).matches == []
    with pytest.raises(InvalidRequest):
        matching_service.confirm_match(store, ledger.family.id, txn.id, rent.id)


def test_confirm_without_income_only_settles(store, ledger):
    account = ledger.account()
    rent = ledger.payment("Rent", "1500.00")
    txn = ledger.transaction(account, "-1490.00")

    confirmed = matching_service.confirm_match(store, ledger.family.id, txn.id, rent.id)
    assert confirmed.attribution is None
    assert confirmed.paid_amount == Decimal("1490.00")


def test_confirm_is_all_or_nothing(store, ledger, db):
    account = ledger.account()
    income = ledger.income("100.00")
    rent = ledger.payment("Rent", "1500.00")
    txn = ledger.transaction(account, "-1500.00")

    with pytest.raises(OverAllocation):
        matching_service.confirm_match(
            store, ledger.family.id, txn.id, rent.id, income_event_id=income.id
        )

    db.refresh(rent)
    db.refresh(txn)
    assert rent.status == "scheduled"
    assert txn.matched_payment_id is None


def test_confirm_rejects_bad_pairs(store, ledger, other_ledger):
    account = ledger.account()
    rent = ledger.payment("Rent", "1500.00")
    inflow = ledger.transaction(account, "1500.00")
    outflow = ledger.transaction(account, "-1500.00")
    foreign_txn = other_ledger.transaction(other_ledger.account(), "-1500.00")

    with pytest.raises(InvalidRequest):
        matching_service.confirm_match(store, ledger.family.id, inflow.id, rent.id)
    with pytest.raises(NotFound):
        matching_service.confirm_match(store, ledger.family.id, foreign_txn.id, rent.id)
    with pytest.raises(NotFound):
        matching_service.confirm_match(store, ledger.family.id, outflow.id, "missing")
