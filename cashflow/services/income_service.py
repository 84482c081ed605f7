"""Income event reads and the ``received`` transition."""

from __future__ import annotations

import datetime
import logging

from cashflow.errors import InvalidRequest, NotFound, OverAllocation
from cashflow.models import IncomeEvent
from cashflow.services import audit_service
from cashflow.services.attribution_service import recompute_income_totals
from cashflow.store import LedgerStore
from cashflow.utils.money import parse_amount

logger = logging.getLogger(__name__)


def get_income_event(store: LedgerStore, family_id: str, income_event_id: str) -> IncomeEvent:
    income = store.get_income_event(family_id, income_event_id)
    if income is None:
        raise NotFound(f"Income event {income_event_id} not found.")
    return income


def mark_received(
    store: LedgerStore,
    family_id: str,
    income_event_id: str,
    actual_amount: object | None = None,
    actual_date: datetime.date | None = None,
    actor_id: str | None = None,
) -> IncomeEvent:
    """Record that an income event was received and rebuild its totals.

    The effective amount switches from the scheduled amount to
    ``actual_amount`` (the scheduled amount when omitted).

    Raises:
        InvalidAmount: Bad ``actual_amount``.
        NotFound: Unknown income event or another family's.
        InvalidRequest: The event is cancelled.
        OverAllocation: Existing attributions exceed the received amount.
    """
    amount = parse_amount(actual_amount, "actualAmount") if actual_amount is not None else None

    with store.atomic():
        income = store.get_income_event(family_id, income_event_id, lock=True)
        if income is None:
            raise NotFound(f"Income event {income_event_id} not found.")
        if income.status == "cancelled":
            raise InvalidRequest(f"Income event '{income.name}' is cancelled.")

        old_values = {
            "status": income.status,
            "actualAmount": income.actual_amount,
            "actualDate": income.actual_date,
        }
        income.status = "received"
        income.actual_amount = amount if amount is not None else income.amount
        income.actual_date = actual_date or datetime.date.today()

        attributed = store.sum_attributions_for_income(income.id)
        if attributed > income.effective_amount:
            raise OverAllocation(
                f"Income event '{income.name}' already has {attributed} attributed; "
                f"cannot record a received amount of {income.actual_amount}."
            )
        recompute_income_totals(store, income)

        audit_service.record(
            store, family_id, actor_id, "update", "IncomeEvent", income.id,
            old_values=old_values,
            new_values={
                "status": income.status,
                "actualAmount": income.actual_amount,
                "actualDate": income.actual_date,
            },
        )

    logger.info(
        "mark_received: income=%s actual=%s remaining=%s",
        income.id, income.actual_amount, income.remaining_amount,
    )
    return income
