"""
Transaction matcher router.

Mounts under ``/api/match``.

Endpoints
---------
POST /         - Ranked transaction-to-payment proposals (read-only).
POST /confirm  - Commit one proposal (admin | editor).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from cashflow.models import FamilyMember
from cashflow.schemas.common import ErrorResponse
from cashflow.schemas.matching import (
    MatchConfirmRequest,
    MatchConfirmResponse,
    MatchRequest,
    MatchResponse,
)
from cashflow.services import matching_service
from cashflow.services.auth_service import get_current_member, get_store, require_role
from cashflow.services.matching_service import MatchOptions
from cashflow.store import LedgerStore
from cashflow.utils.constants import WRITE_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Transaction Matching"])


@router.post(
    "",
    response_model=MatchResponse,
    summary="Propose transaction-to-payment matches",
    description=(
        "Pairs the family's bank outflows with unpaid payments due within the "
        "date tolerance and ranks the pairs by confidence. Nothing is written."
    ),
    responses={400: {"model": ErrorResponse, "description": "InvalidRequest."}},
)
def match(
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
    data: MatchRequest | None = None,
) -> MatchResponse:
    data = data or MatchRequest()
    options = MatchOptions(
        from_date=data.from_date,
        to_date=data.to_date,
        account_ids=tuple(data.account_ids) if data.account_ids is not None else None,
        amount_tolerance=data.amount_tolerance,
        date_tolerance=data.date_tolerance,
        include_pending=data.include_pending,
        include_matched=data.include_matched,
    )
    logger.debug("POST /match family=%s options=%s", current_member.family_id, options)
    return matching_service.match(store, current_member.family_id, options)


@router.post(
    "/confirm",
    response_model=MatchConfirmResponse,
    summary="Confirm a proposed match",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "OverAllocation."},
    },
)
def confirm_match(
    data: MatchConfirmRequest,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role(*WRITE_ROLES))],
) -> MatchConfirmResponse:
    logger.info(
        "POST /match/confirm transaction=%s payment=%s income=%s member=%s",
        data.transaction_id, data.payment_id, data.income_event_id, current_member.id,
    )
    return matching_service.confirm_match(
        store,
        current_member.family_id,
        data.transaction_id,
        data.payment_id,
        income_event_id=data.income_event_id,
        actor_id=current_member.id,
    )
