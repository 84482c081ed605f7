"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the camelCase base model, the ``Money`` type, and the generic
message and error envelopes so that each domain module can compose them
without duplicating field definitions.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimals travel as JSON numbers, never as strings.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Generic message envelope for operations that do not return a resource.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information.
    """

    message: str = Field(..., description="Short summary of the operation result.")
    detail: str | None = Field(default=None, description="Additional context.")


class ErrorResponse(BaseModel):
    """Structured error returned for every domain or store failure.

    Attributes:
        error: Stable error kind, e.g. ``"OverAllocation"``.
        message: Human-readable explanation (no storage internals).
    """

    error: str = Field(..., description="Error kind.")
    message: str = Field(..., description="Human-readable message.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "OverAllocation",
                "message": "Attribution of 0.01 exceeds the 0.00 still available on income event 'Salary'.",
            }
        }
    )
