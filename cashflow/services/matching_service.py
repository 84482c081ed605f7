"""
Transaction matcher service layer.

Proposes ``(bank transaction, payment)`` pairs with a confidence score and a
match type.  ``match`` never writes to the ledger; ``confirm_match`` is the
separate, explicit step that commits one proposal.

Scoring rules (first applicable rule wins)
------------------------------------------
1. ``exact_amount``   - amounts equal to the cent                   → 1.0
2. ``merchant_match`` - payee named in the bank text, amount within
                        tolerance                                   → 0.9
3. ``close_amount``   - amount within tolerance                     → 0.5 to 0.85
4. ``date_range``     - amount off, but dates within tolerance      → 0.3 to 0.5

Design notes
------------
- The rules live in ``MATCH_RULES``, an ordered tuple of predicate/score
  pairs, so their priority is explicit and each rule can be tested alone.
- ``amount_tolerance`` is a fraction of the payment amount: 0.01 means the
  bank amount may differ from the payment by up to 1 %.
- Payments are indexed by due date; each transaction only probes the
  ``2 * date_tolerance + 1`` dates around its own, instead of scanning every
  payment.  Transactions are streamed from the store in batches.
- Ordering is fully deterministic: confidence desc, then transaction date,
  transaction id and payment id.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from cashflow.config import get_settings
from cashflow.errors import InvalidRequest, NotFound
from cashflow.models import Payment, Transaction
from cashflow.schemas.attribution import AttributionResponse
from cashflow.schemas.matching import (
    MatchCandidateResponse,
    MatchConfirmResponse,
    MatchResponse,
    MatchSummary,
)
from cashflow.services import audit_service
from cashflow.services.attribution_service import insert_attribution
from cashflow.store import LedgerStore
from cashflow.utils.constants import (
    CONFIDENCE_CLOSE_MAX,
    CONFIDENCE_CLOSE_MIN,
    CONFIDENCE_DATE_MAX,
    CONFIDENCE_DATE_MIN,
    CONFIDENCE_EXACT,
    CONFIDENCE_MERCHANT,
    EXACT_AMOUNT_EPSILON,
    MATCH_CLOSE,
    MATCH_DATE_RANGE,
    MATCH_EXACT,
    MATCH_MERCHANT,
    MAX_DATE_TOLERANCE_DAYS,
    PAYMENT_UNPAID,
)
from cashflow.utils.money import to_decimal

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchOptions:
    """Caller-tunable knobs of one matcher run.

    ``None`` tolerances fall back to the engine-wide settings.
    """

    from_date: date | None = None
    to_date: date | None = None
    account_ids: tuple[str, ...] | None = None
    amount_tolerance: Decimal | None = None
    date_tolerance: int | None = None
    include_pending: bool = False
    include_matched: bool = False


@dataclass(frozen=True)
class PairFacts:
    """Everything the scoring rules need to know about one pair."""

    amount_diff: Decimal
    tolerance_amount: Decimal
    days_apart: int
    date_tolerance: int
    merchant_hit: bool

    @property
    def within_tolerance(self) -> bool:
        return self.amount_diff <= self.tolerance_amount


@dataclass(frozen=True)
class MatchRule:
    match_type: str
    applies: Callable[[PairFacts], bool]
    score: Callable[[PairFacts], float]


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------


def _close_amount_score(facts: PairFacts) -> float:
    if facts.tolerance_amount <= 0:
        return CONFIDENCE_CLOSE_MAX
    ratio = float(facts.amount_diff / facts.tolerance_amount)
    return CONFIDENCE_CLOSE_MIN + (CONFIDENCE_CLOSE_MAX - CONFIDENCE_CLOSE_MIN) * (1 - ratio)


def _date_range_score(facts: PairFacts) -> float:
    if facts.date_tolerance <= 0:
        return CONFIDENCE_DATE_MAX
    ratio = facts.days_apart / facts.date_tolerance
    return CONFIDENCE_DATE_MAX - (CONFIDENCE_DATE_MAX - CONFIDENCE_DATE_MIN) * ratio


MATCH_RULES: tuple[MatchRule, ...] = (
    MatchRule(
        MATCH_EXACT,
        lambda f: f.amount_diff < EXACT_AMOUNT_EPSILON,
        lambda f: CONFIDENCE_EXACT,
    ),
    MatchRule(
        MATCH_MERCHANT,
        lambda f: f.merchant_hit and f.within_tolerance,
        lambda f: CONFIDENCE_MERCHANT,
    ),
    MatchRule(
        MATCH_CLOSE,
        lambda f: f.within_tolerance,
        _close_amount_score,
    ),
    MatchRule(
        MATCH_DATE_RANGE,
        lambda f: f.days_apart <= f.date_tolerance,
        _date_range_score,
    ),
)


def evaluate(facts: PairFacts) -> tuple[str, float] | None:
    """Return ``(match_type, confidence)`` of the first rule that applies."""
    for rule in MATCH_RULES:
        if rule.applies(facts):
            return rule.match_type, round(rule.score(facts), 4)
    return None


def merchant_mentions_payee(transaction: Transaction, payee: str | None) -> bool:
    """Case-insensitive substring test of the payee in the bank text."""
    needle = (payee or "").strip().lower()
    if not needle:
        return False
    haystacks = (transaction.merchant_name, transaction.description)
    return any(needle in text.lower() for text in haystacks if text)


def pair_facts(
    transaction: Transaction,
    payment: Payment,
    amount_tolerance: Decimal,
    date_tolerance: int,
) -> PairFacts:
    payment_amount = Decimal(payment.amount)
    return PairFacts(
        amount_diff=abs(abs(Decimal(transaction.amount)) - payment_amount),
        tolerance_amount=amount_tolerance * payment_amount,
        days_apart=abs((transaction.date - payment.due_date).days),
        date_tolerance=date_tolerance,
        merchant_hit=merchant_mentions_payee(transaction, payment.payee),
    )


def _index_by_due_date(payments: list[Payment]) -> dict[date, list[Payment]]:
    index: dict[date, list[Payment]] = defaultdict(list)
    for payment in payments:
        index[payment.due_date].append(payment)
    return index


def _resolve_tolerances(options: MatchOptions) -> tuple[Decimal, int]:
    settings = get_settings()
    amount_tolerance = (
        to_decimal(options.amount_tolerance)
        if options.amount_tolerance is not None
        else to_decimal(settings.MATCH_AMOUNT_TOLERANCE)
    )
    date_tolerance = (
        options.date_tolerance
        if options.date_tolerance is not None
        else settings.MATCH_DATE_TOLERANCE_DAYS
    )
    if not amount_tolerance.is_finite() or amount_tolerance < 0:
        raise InvalidRequest("amountTolerance must be a non-negative number.")
    if not 0 <= date_tolerance <= MAX_DATE_TOLERANCE_DAYS:
        raise InvalidRequest(
            f"dateTolerance must be between 0 and {MAX_DATE_TOLERANCE_DAYS} days."
        )
    return amount_tolerance, date_tolerance


def _empty_response() -> MatchResponse:
    return MatchResponse(
        matches=[],
        summary=MatchSummary(total_transactions=0, total_matches=0, high_confidence_matches=0),
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def match(store: LedgerStore, family_id: str, options: MatchOptions | None = None) -> MatchResponse:
    """Propose transaction-to-payment pairings for a family.

    Every in-scope outflow is paired with every unpaid payment due within
    ``date_tolerance`` days of it; each pair is classified by ``MATCH_RULES``.

    Args:
        store: Ledger store bound to the request session.
        family_id: Caller's family.
        options: Window, account subset and tolerances.

    Returns:
        A ``MatchResponse`` with the ranked candidates and summary counters.
        An empty scope yields an empty list, not an error.

    Raises:
        InvalidRequest: ``from_date > to_date``, a negative tolerance, or an
                        account id that is not one of the family's accounts.
    """
    options = options or MatchOptions()
    settings = get_settings()

    if options.from_date and options.to_date and options.from_date > options.to_date:
        raise InvalidRequest(
            f"fromDate {options.from_date.isoformat()} is after toDate {options.to_date.isoformat()}."
        )
    amount_tolerance, date_tolerance = _resolve_tolerances(options)

    family_accounts = store.family_account_ids(family_id)
    if options.account_ids is not None:
        foreign = set(options.account_ids) - family_accounts
        if foreign:
            raise InvalidRequest(f"Unknown bank accounts for this family: {sorted(foreign)}.")
        scope = set(options.account_ids)
    else:
        scope = family_accounts
    if not scope:
        return _empty_response()

    scan = dict(
        account_ids=scope,
        start=options.from_date,
        end=options.to_date,
        include_pending=options.include_pending,
        include_matched=options.include_matched,
    )
    first_day, last_day = store.outflow_date_bounds(**scan)
    if first_day is None:
        return _empty_response()

    window = timedelta(days=date_tolerance)
    payments = store.unpaid_payments(
        family_id, PAYMENT_UNPAID, first_day - window, last_day + window
    )
    by_due_date = _index_by_due_date(payments)

    total_transactions = 0
    candidates: list[MatchCandidateResponse] = []
    for batch in store.iter_outflows(batch_size=settings.MATCH_BATCH_SIZE, **scan):
        for txn in batch:
            total_transactions += 1
            for offset in range(-date_tolerance, date_tolerance + 1):
                for payment in by_due_date.get(txn.date + timedelta(days=offset), ()):
                    facts = pair_facts(txn, payment, amount_tolerance, date_tolerance)
                    verdict = evaluate(facts)
                    if verdict is None:
                        continue
                    match_type, confidence = verdict
                    candidates.append(
                        MatchCandidateResponse(
                            transaction_id=txn.id,
                            payment_id=payment.id,
                            confidence=confidence,
                            match_type=match_type,
                            transaction_date=txn.date,
                            transaction_amount=Decimal(txn.amount),
                            payment_amount=Decimal(payment.amount),
                            due_date=payment.due_date,
                            amount_difference=facts.amount_diff,
                            days_apart=facts.days_apart,
                        )
                    )

    candidates.sort(
        key=lambda c: (-c.confidence, c.transaction_date, c.transaction_id, c.payment_id)
    )
    high = sum(1 for c in candidates if c.confidence >= settings.MATCH_HIGH_CONFIDENCE)

    logger.info(
        "match: family=%s transactions=%d payments=%d candidates=%d high=%d",
        family_id, total_transactions, len(payments), len(candidates), high,
    )
    return MatchResponse(
        matches=candidates,
        summary=MatchSummary(
            total_transactions=total_transactions,
            total_matches=len(candidates),
            high_confidence_matches=high,
        ),
    )


def confirm_match(
    store: LedgerStore,
    family_id: str,
    transaction_id: str,
    payment_id: str,
    income_event_id: str | None = None,
    actor_id: str | None = None,
) -> MatchConfirmResponse:
    """Commit one proposal: the bank line settles the payment.

    The transaction is marked as matched, the payment becomes ``paid`` with
    the bank date and amount, and, when *income_event_id* is given, the
    payment's unfunded balance is attributed to that income event as an
    ``automatic`` attribution.  All of it commits or none of it does.

    Raises:
        NotFound: Unknown transaction, payment or income event.
        InvalidRequest: Transaction already matched or not an outflow,
                        payment not open, or income event cancelled.
        OverAllocation: The income event cannot fund the payment's balance.
    """
    with store.atomic():
        txn = store.get_transaction(family_id, transaction_id, lock=True)
        if txn is None:
            raise NotFound(f"Transaction {transaction_id} not found.")
        if txn.matched_payment_id is not None:
            raise InvalidRequest(f"Transaction {transaction_id} is already matched.")
        if Decimal(txn.amount) >= 0:
            raise InvalidRequest(f"Transaction {transaction_id} is not an outflow.")

        income = None
        if income_event_id is not None:
            income = store.get_income_event(family_id, income_event_id, lock=True)
            if income is None:
                raise NotFound(f"Income event {income_event_id} not found.")
            if income.status == "cancelled":
                raise InvalidRequest(f"Income event '{income.name}' is cancelled.")

        payment = store.get_payment(family_id, payment_id, lock=True)
        if payment is None:
            raise NotFound(f"Payment {payment_id} not found.")
        if payment.status not in PAYMENT_UNPAID:
            raise InvalidRequest(f"Payment '{payment.payee}' is {payment.status}.")

        attribution = None
        if income is not None:
            unfunded = Decimal(payment.amount) - store.sum_attributions_for_payment(payment.id)
            if unfunded > 0:
                attribution = insert_attribution(
                    store, income, payment, unfunded, "automatic", actor_id or "system"
                )

        old_status = payment.status
        txn.matched_payment_id = payment.id
        payment.status = "paid"
        payment.paid_date = txn.date
        payment.paid_amount = abs(Decimal(txn.amount))

        audit_service.record(
            store, family_id, actor_id, "update", "Payment", payment.id,
            old_values={"status": old_status},
            new_values={
                "status": payment.status,
                "paidDate": payment.paid_date,
                "paidAmount": payment.paid_amount,
                "transactionId": txn.id,
            },
        )

    logger.info(
        "confirm_match: transaction=%s payment=%s attribution=%s",
        transaction_id, payment_id, attribution.id if attribution else None,
    )
    return MatchConfirmResponse(
        transaction_id=txn.id,
        payment_id=payment.id,
        payment_status=payment.status,
        paid_amount=payment.paid_amount,
        attribution=AttributionResponse.model_validate(attribution) if attribution else None,
    )
