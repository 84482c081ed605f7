"""
Budget allocations router.

Mounts under ``/api/allocations``.

Endpoints
---------
GET    /?incomeEventId=  - Allocations of an income event.
POST   /generate         - Split an income event across active categories.
DELETE /?incomeEventId=  - Remove the allocation set so it can be regenerated.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cashflow.models import FamilyMember
from cashflow.schemas.budget import AllocationSetResponse, GenerateAllocationsRequest
from cashflow.schemas.common import ErrorResponse, MessageResponse
from cashflow.services import allocation_service
from cashflow.services.auth_service import get_current_member, get_store, require_role
from cashflow.store import LedgerStore
from cashflow.utils.constants import WRITE_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budget Allocations"])


@router.get(
    "",
    response_model=AllocationSetResponse,
    summary="Allocations of an income event",
    responses={404: {"model": ErrorResponse}},
)
def get_allocations(
    income_event_id: Annotated[str, Query(alias="incomeEventId", min_length=1)],
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
) -> AllocationSetResponse:
    return allocation_service.get_allocations(store, current_member.family_id, income_event_id)


@router.post(
    "/generate",
    response_model=AllocationSetResponse,
    status_code=201,
    summary="Generate budget allocations",
    description=(
        "Splits the income event's effective amount across the family's active "
        "budget categories in sort order. The last category absorbs rounding so "
        "the allocations sum exactly to the income amount."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "InvalidPercentage or InvalidRequest."},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Allocations already exist."},
        422: {"model": ErrorResponse, "description": "No active budget categories."},
    },
)
def generate_allocations(
    data: GenerateAllocationsRequest,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
) -> AllocationSetResponse:
    logger.info(
        "POST /allocations/generate income=%s overrides=%s member=%s",
        data.income_event_id, data.override_percentages, current_member.id,
    )
    return allocation_service.generate_allocations(
        store,
        current_member.family_id,
        data.income_event_id,
        data.override_percentages,
        actor_id=current_member.id,
    )


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Delete the allocations of an income event",
    responses={404: {"model": ErrorResponse}},
)
def delete_allocations(
    income_event_id: Annotated[str, Query(alias="incomeEventId", min_length=1)],
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
) -> MessageResponse:
    deleted = allocation_service.delete_allocations(
        store, current_member.family_id, income_event_id, current_member.id
    )
    return MessageResponse(message="Allocations deleted.", detail=f"{deleted} rows removed.")
