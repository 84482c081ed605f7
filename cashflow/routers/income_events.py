"""
Income events router.

Mounts under ``/api/income-events``.  Creation and editing of income events
is handled by the CRUD layer; this router exposes the reads and the
``received`` transition that drive the ledger's derived totals.

Endpoints
---------
GET  /{income_event_id}                - Income event with derived totals.
POST /{income_event_id}/mark-received  - Record receipt and rebuild totals.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from cashflow.models import FamilyMember
from cashflow.schemas.common import ErrorResponse
from cashflow.schemas.income_event import IncomeEventResponse, MarkReceivedRequest
from cashflow.services import income_service
from cashflow.services.auth_service import get_current_member, get_store, require_role
from cashflow.store import LedgerStore
from cashflow.utils.constants import WRITE_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Income Events"])


@router.get(
    "/{income_event_id}",
    response_model=IncomeEventResponse,
    summary="Income event detail",
    responses={404: {"model": ErrorResponse}},
)
def get_income_event(
    income_event_id: str,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
) -> IncomeEventResponse:
    income = income_service.get_income_event(store, current_member.family_id, income_event_id)
    return IncomeEventResponse.model_validate(income)


@router.post(
    "/{income_event_id}/mark-received",
    response_model=IncomeEventResponse,
    summary="Mark an income event as received",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Attributions exceed the received amount."},
    },
)
def mark_received(
    income_event_id: str,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
    data: MarkReceivedRequest | None = None,
) -> IncomeEventResponse:
    data = data or MarkReceivedRequest()
    logger.info(
        "POST /income-events/%s/mark-received amount=%s member=%s",
        income_event_id, data.actual_amount, current_member.id,
    )
    income = income_service.mark_received(
        store,
        current_member.family_id,
        income_event_id,
        actual_amount=data.actual_amount,
        actual_date=data.actual_date,
        actor_id=current_member.id,
    )
    return IncomeEventResponse.model_validate(income)
