"""
Attribution ledger service layer.

Owns the creation and removal of payment-to-income links and keeps each
income event's derived ``allocated_amount`` / ``remaining_amount`` in step
with the attribution rows.

Design notes
------------
- Derived totals are a materialised view: ``recompute_income_totals`` rebuilds
  them from a SUM over ``payment_attribution`` on every write.  They are never
  adjusted by incremental arithmetic.
- The income event (and payment) rows are locked for the whole
  check-then-insert sequence, so two concurrent attributions against the
  same income cannot both pass the over-allocation check.
- Input checks (amount precision, attribution type) run before the unit of
  work opens; ownership and balance checks run inside it, before any row is
  written.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from cashflow.errors import InvalidRequest, NotFound, OverAllocation
from cashflow.models import IncomeEvent, Payment, PaymentAttribution
from cashflow.schemas.attribution import AttributionListResponse, AttributionResponse
from cashflow.services import audit_service
from cashflow.store import LedgerStore
from cashflow.utils.constants import ATTRIBUTION_TYPES, ZERO
from cashflow.utils.money import parse_amount

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def recompute_income_totals(store: LedgerStore, income: IncomeEvent) -> tuple[Decimal, Decimal]:
    """Rebuild ``allocated_amount`` / ``remaining_amount`` from attribution rows.

    Must run inside the caller's ``atomic()`` block, after the attribution
    insert or delete has been staged.

    Returns:
        ``(allocated, remaining)`` as written on the income event.

    Raises:
        OverAllocation: If the attribution rows exceed the effective amount
                        (e.g. after the received amount was lowered).
    """
    store.flush()
    allocated = store.sum_attributions_for_income(income.id)
    effective = income.effective_amount
    if allocated > effective:
        raise OverAllocation(
            f"Income event '{income.name}' would have {allocated} attributed "
            f"against an effective amount of {effective}."
        )
    income.allocated_amount = allocated
    income.remaining_amount = effective - allocated
    return allocated, income.remaining_amount


def insert_attribution(
    store: LedgerStore,
    income: IncomeEvent,
    payment: Payment,
    amount: Decimal,
    attribution_type: str,
    actor_id: str,
) -> PaymentAttribution:
    """Check balances and stage a new attribution on locked rows.

    Shared by ``create_attribution`` and the matcher's confirmation path.
    The caller owns the unit of work and the row locks.

    Raises:
        OverAllocation: If the income event's or the payment's attributed
                        total would exceed its amount.
    """
    effective = income.effective_amount
    current = store.sum_attributions_for_income(income.id)
    if current + amount > effective:
        raise OverAllocation(
            f"Attribution of {amount} exceeds the {effective - current} still "
            f"available on income event '{income.name}'."
        )

    funded = store.sum_attributions_for_payment(payment.id)
    if funded + amount > Decimal(payment.amount):
        raise OverAllocation(
            f"Attribution of {amount} exceeds the {Decimal(payment.amount) - funded} "
            f"still unfunded on payment '{payment.payee}'."
        )

    attribution = PaymentAttribution(
        income_event_id=income.id,
        payment_id=payment.id,
        amount=amount,
        attribution_type=attribution_type,
        created_by=actor_id,
    )
    store.add(attribution)
    recompute_income_totals(store, income)

    audit_service.record(
        store,
        income.family_id,
        actor_id,
        "create",
        "PaymentAttribution",
        attribution.id,
        new_values={
            "incomeEventId": income.id,
            "paymentId": payment.id,
            "amount": amount,
            "attributionType": attribution_type,
        },
    )
    return attribution


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def create_attribution(
    store: LedgerStore,
    family_id: str,
    income_event_id: str,
    payment_id: str,
    amount: object,
    attribution_type: str,
    actor_id: str,
) -> PaymentAttribution:
    """Link part of an income event to a payment.

    Args:
        store: Ledger store bound to the request session.
        family_id: Caller's family; both rows must belong to it.
        income_event_id: Income event funding the payment.
        payment_id: Payment being funded.
        amount: Positive amount with at most 2 decimals.
        attribution_type: ``"manual"`` or ``"automatic"``.
        actor_id: FamilyMember id recorded as creator.

    Returns:
        The committed ``PaymentAttribution``.

    Raises:
        InvalidAmount: Bad amount.
        InvalidRequest: Unknown type, or a cancelled income event / payment.
        NotFound: Either row missing or owned by another family.
        OverAllocation: Income or payment balance would be exceeded.
    """
    value = parse_amount(amount)
    if attribution_type not in ATTRIBUTION_TYPES:
        raise InvalidRequest(
            f"Attribution type must be one of {ATTRIBUTION_TYPES}, got '{attribution_type}'."
        )

    with store.atomic():
        income = store.get_income_event(family_id, income_event_id, lock=True)
        if income is None:
            raise NotFound(f"Income event {income_event_id} not found.")
        if income.status == "cancelled":
            raise InvalidRequest(f"Income event '{income.name}' is cancelled.")

        payment = store.get_payment(family_id, payment_id, lock=True)
        if payment is None:
            raise NotFound(f"Payment {payment_id} not found.")
        if payment.status == "cancelled":
            raise InvalidRequest(f"Payment '{payment.payee}' is cancelled.")

        attribution = insert_attribution(
            store, income, payment, value, attribution_type, actor_id
        )

    logger.info(
        "create_attribution: id=%s income=%s payment=%s amount=%s remaining=%s",
        attribution.id, income.id, payment.id, value, income.remaining_amount,
    )
    return attribution


def remove_attribution(
    store: LedgerStore, family_id: str, attribution_id: str, actor_id: str | None = None
) -> None:
    """Delete an attribution and rebuild its income event's totals.

    Raises:
        NotFound: If the attribution does not exist or belongs to another family.
    """
    with store.atomic():
        attribution = store.get_attribution(family_id, attribution_id)
        if attribution is None:
            raise NotFound(f"Attribution {attribution_id} not found.")

        income = store.get_income_event(family_id, attribution.income_event_id, lock=True)
        if income is None:  # pragma: no cover - FK guarantees the parent
            raise NotFound(f"Income event {attribution.income_event_id} not found.")

        old_values = {
            "incomeEventId": attribution.income_event_id,
            "paymentId": attribution.payment_id,
            "amount": attribution.amount,
        }
        store.delete(attribution)
        recompute_income_totals(store, income)
        audit_service.record(
            store, family_id, actor_id, "delete", "PaymentAttribution", attribution_id,
            old_values=old_values,
        )

    logger.info(
        "remove_attribution: id=%s income=%s remaining=%s",
        attribution_id, income.id, income.remaining_amount,
    )


def list_attributions(
    store: LedgerStore, family_id: str, income_event_id: str
) -> AttributionListResponse:
    """Return an income event's attributions with totals computed from them.

    The totals are derived from the very rows returned, never from the cached
    columns on the income event, so the response is always self-consistent.

    Raises:
        NotFound: If the income event does not exist or belongs to another family.
    """
    income = store.get_income_event(family_id, income_event_id)
    if income is None:
        raise NotFound(f"Income event {income_event_id} not found.")

    rows = store.attributions_for_income(income.id)
    total = sum((Decimal(r.amount) for r in rows), ZERO)
    remaining = income.effective_amount - total

    logger.debug(
        "list_attributions: income=%s rows=%d total=%s remaining=%s",
        income.id, len(rows), total, remaining,
    )
    return AttributionListResponse(
        income_event_id=income.id,
        attributions=[AttributionResponse.model_validate(r) for r in rows],
        total_attributed=total,
        remaining_amount=remaining,
    )
