"""
Budget categories router.

Mounts under ``/api/budget-categories``.  Category writes are restricted to
``admin`` members because they change how every future income is split.

Endpoints
---------
GET   /                      - Categories in sort order.
POST  /                      - Create a category (percent total ≤ 100).
PATCH /{category_id}         - Partial update (percent total ≤ 100).
POST  /validate-percentages  - Check a proposed set reaches 100 %.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cashflow.models import FamilyMember
from cashflow.schemas.budget import (
    BudgetCategoryCreate,
    BudgetCategoryResponse,
    BudgetCategoryUpdate,
    ValidatePercentagesRequest,
    ValidatePercentagesResponse,
)
from cashflow.schemas.common import ErrorResponse
from cashflow.services import budget_category_service
from cashflow.services.auth_service import get_current_member, get_store, require_role
from cashflow.store import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budget Categories"])


@router.get("", response_model=list[BudgetCategoryResponse], summary="List budget categories")
def list_categories(
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
) -> list[BudgetCategoryResponse]:
    rows = budget_category_service.list_categories(
        store, current_member.family_id, include_inactive
    )
    return [BudgetCategoryResponse.model_validate(r) for r in rows]


@router.post(
    "",
    response_model=BudgetCategoryResponse,
    status_code=201,
    summary="Create a budget category",
    responses={400: {"model": ErrorResponse, "description": "InvalidPercentage."}},
)
def create_category(
    data: BudgetCategoryCreate,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role("admin"))],
) -> BudgetCategoryResponse:
    category = budget_category_service.create_category(
        store, current_member.family_id, data, current_member.id
    )
    return BudgetCategoryResponse.model_validate(category)


@router.patch(
    "/{category_id}",
    response_model=BudgetCategoryResponse,
    summary="Update a budget category",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_category(
    category_id: str,
    data: BudgetCategoryUpdate,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(require_role("admin"))],
) -> BudgetCategoryResponse:
    category = budget_category_service.update_category(
        store, current_member.family_id, category_id, data, current_member.id
    )
    return BudgetCategoryResponse.model_validate(category)


@router.post(
    "/validate-percentages",
    response_model=ValidatePercentagesResponse,
    summary="Validate proposed category percentages",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def validate_percentages(
    data: ValidatePercentagesRequest,
    store: Annotated[LedgerStore, Depends(get_store)],
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
) -> ValidatePercentagesResponse:
    return budget_category_service.validate_percentages(
        store, current_member.family_id, data.categories
    )
