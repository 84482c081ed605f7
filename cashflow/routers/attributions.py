"""
Attribution ledger router.

Mounts under ``/api/attributions`` (prefix set in ``main.py``).

All endpoints require a valid JWT.  Writes additionally require the
``admin`` or ``editor`` role.

Endpoints
---------
GET    /?incomeEventId=  - Attributions of an income event with live totals.
POST   /                 - Attribute part of an income event to a payment.
DELETE /{attribution_id} - Remove an attribution and rebuild totals.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cashflow.models import FamilyMember
from cashflow.schemas.attribution import (
    AttributionCreate,
    AttributionListResponse,
    AttributionResponse,
)
from cashflow.schemas.common import ErrorResponse, MessageResponse
from cashflow.services import attribution_service
from cashflow.services.auth_service import get_current_member, get_store, require_role
from cashflow.store import LedgerStore
from cashflow.utils.constants import WRITE_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attributions"])


@router.get(
    "",
    response_model=AttributionListResponse,
    summary="List attributions of an income event",
    responses={404: {"model": ErrorResponse, "description": "Unknown income event."}},
)
def list_attributions(
    income_event_id: Annotated[str, Query(alias="incomeEventId", min_length=1)],
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
) -> AttributionListResponse:
    """Newest first; totals recomputed from the returned rows."""
    return attribution_service.list_attributions(
        store, current_member.family_id, income_event_id
    )


@router.post(
    "",
    response_model=AttributionResponse,
    status_code=201,
    summary="Create an attribution",
    responses={
        400: {"model": ErrorResponse, "description": "InvalidAmount or InvalidRequest."},
        404: {"model": ErrorResponse, "description": "Income event or payment not found."},
        409: {"model": ErrorResponse, "description": "OverAllocation."},
    },
)
def create_attribution(
    data: AttributionCreate,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
) -> AttributionResponse:
    logger.info(
        "POST /attributions income=%s payment=%s amount=%s member=%s",
        data.income_event_id, data.payment_id, data.amount, current_member.id,
    )
    attribution = attribution_service.create_attribution(
        store,
        current_member.family_id,
        data.income_event_id,
        data.payment_id,
        data.amount,
        data.type,
        current_member.id,
    )
    return AttributionResponse.model_validate(attribution)


@router.delete(
    "/{attribution_id}",
    response_model=MessageResponse,
    summary="Remove an attribution",
    responses={404: {"model": ErrorResponse, "description": "Attribution not found."}},
)
def remove_attribution(
    attribution_id: str,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
) -> MessageResponse:
    attribution_service.remove_attribution(
        store, current_member.family_id, attribution_id, current_member.id
    )
    return MessageResponse(message="Attribution removed.")
