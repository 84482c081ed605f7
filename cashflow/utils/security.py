"""
Credentials and access tokens for family members.

Passwords are stored as bcrypt hashes.  Access tokens are HS256 JWTs whose
``sub`` is the member id and whose ``family_id`` claim pins every request
to one family's ledger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from cashflow.config import get_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Password helpers
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    # Malformed stored hashes count as a failed check.
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------


def create_access_token(data: dict[str, Any]) -> str:
    """Sign *data* as a JWT, adding ``iat`` and ``exp`` claims."""
    settings = get_settings()
    issued = datetime.now(timezone.utc)
    claims = {
        **data,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_member_token(member_id: str, family_id: str, role: str | None = None) -> str:
    """Issue the access token of one family member.

    Example::

        token = create_member_token(member.id, member.family_id, member.role)
    """
    claims: dict[str, Any] = {"sub": member_id, "family_id": family_id}
    if role is not None:
        claims["role"] = role
    return create_access_token(claims)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify an access token.

    Raises:
        ValueError: Bad signature, expired, or not a JWT.  The auth
                    dependency turns this into HTTP 401.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        raise ValueError("Invalid or expired token") from exc
