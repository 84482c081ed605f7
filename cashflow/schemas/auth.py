"""
Pydantic v2 schemas for the authentication endpoints.

Covers the JWT token response and the public member representation
returned by ``GET /api/auth/me``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cashflow.schemas.common import CamelModel


class TokenResponse(BaseModel):
    """Response body returned after a successful authentication.

    Attributes:
        access_token: Signed JWT for the ``Authorization: Bearer`` header.
        token_type: Always ``"bearer"`` per OAuth2 convention.
    """

    access_token: str = Field(..., description="Signed JWT access token")
    token_type: str = Field(default="bearer", description="OAuth2 token type")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "bearer",
            }
        }
    )


class MemberResponse(CamelModel):
    """Public representation of an authenticated family member.

    ``password_hash`` is deliberately excluded.
    """

    id: str
    family_id: str
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None
    role: str
