"""
Authentication router.

Mounts under ``/api/auth`` (prefix set in ``main.py``).

Endpoints:
    POST /login - Authenticate with email + password, receive JWT.
    GET  /me    - Return the currently authenticated member.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from cashflow.models import FamilyMember
from cashflow.schemas.auth import MemberResponse, TokenResponse
from cashflow.services.auth_service import authenticate_member, get_current_member, get_store
from cashflow.store import LedgerStore
from cashflow.utils.security import create_member_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={
        200: {"description": "Authenticated; the JWT is included."},
        401: {"description": "Wrong credentials or inactive account."},
    },
)
def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    store: Annotated[LedgerStore, Depends(get_store)],
) -> TokenResponse:
    """Authenticate a member (``username`` carries the email) and issue a JWT."""
    member = authenticate_member(store, form_data.username, form_data.password)
    if member is None:
        logger.warning("Failed login attempt for '%s'", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Wrong credentials or inactive account",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_member_token(member.id, member.family_id, member.role)
    logger.info("Successful login for '%s' role='%s'", member.email, member.role)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=MemberResponse, summary="Current member")
def me(
    current_member: Annotated[FamilyMember, Depends(get_current_member)],
) -> MemberResponse:
    return MemberResponse.model_validate(current_member)
