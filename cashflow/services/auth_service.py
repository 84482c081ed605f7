"""
Authentication business logic for the cash-flow API.

Provides:
- ``authenticate_member`` - credential verification against the DB.
- ``get_current_member`` - FastAPI dependency that extracts and validates
  the Bearer JWT from the ``Authorization`` header.
- ``require_role`` - dependency factory that enforces role-based access
  control on top of ``get_current_member``.
- ``get_store`` - FastAPI dependency wrapping the request session in a
  ``LedgerStore``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cashflow.database import get_db
from cashflow.models import FamilyMember
from cashflow.store import LedgerStore
from cashflow.utils.security import verify_password, verify_token

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_store(db: Annotated[Session, Depends(get_db)]) -> LedgerStore:
    return LedgerStore(db)


# ---------------------------------------------------------------------------
# Core authentication function
# ---------------------------------------------------------------------------


def authenticate_member(store: LedgerStore, email: str, password: str) -> FamilyMember | None:
    """Verify email/password credentials.

    Returns ``None`` (instead of raising) so that callers control the HTTP
    error response.  Unknown emails and wrong passwords take the same path.
    """
    member = store.get_member_by_email(email)
    if member is None:
        logger.debug("authenticate_member: unknown or inactive member '%s'", email)
        return None

    if not verify_password(password, member.password_hash):
        logger.debug("authenticate_member: wrong password for '%s'", email)
        return None

    # Best-effort; a failed timestamp update must not block the login.
    try:
        member.last_login_at = datetime.now(timezone.utc)
        store.db.commit()
    except SQLAlchemyError:  # pragma: no cover
        store.db.rollback()
        logger.warning("Could not update last_login_at for '%s'", email)

    return member


# ---------------------------------------------------------------------------
# FastAPI dependency - current authenticated member
# ---------------------------------------------------------------------------


def get_current_member(
    token: Annotated[str, Depends(oauth2_scheme)],
    store: Annotated[LedgerStore, Depends(get_store)],
) -> FamilyMember:
    """Resolve the caller's identity from a JWT.

    Raises:
        HTTPException 401: If the token is missing, invalid or expired, or
                           the member no longer exists or is inactive, or the
                           token's ``family_id`` no longer matches.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(token)
    except ValueError:
        raise credentials_exception

    member_id: str | None = payload.get("sub")
    if not member_id:
        raise credentials_exception

    member = store.get_member(member_id)
    if member is None or not member.active:
        raise credentials_exception
    if payload.get("family_id") != member.family_id:
        raise credentials_exception

    return member


# ---------------------------------------------------------------------------
# Role enforcement dependency factory
# ---------------------------------------------------------------------------


def require_role(*roles: str):
    """Return a FastAPI dependency that restricts access to the given roles.

    .. code-block:: python

        @router.post("/")
        def write_endpoint(
            member: FamilyMember = Depends(require_role("admin", "editor")),
        ):
            ...

    Raises:
        HTTPException 403: If the member's role is not in *roles*.
    """
    allowed = frozenset(roles)

    def _check_role(
        current_member: Annotated[FamilyMember, Depends(get_current_member)],
    ) -> FamilyMember:
        if current_member.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. One of these roles is required: {sorted(allowed)}",
            )
        return current_member

    return _check_role
