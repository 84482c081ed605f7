"""
Decimal helpers for money and percentages.

All amounts crossing the service boundary go through ``parse_amount`` so that
float noise, NaN and sub-cent precision are rejected before any mutation.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from cashflow.errors import InvalidAmount, InvalidPercentage
from cashflow.utils.constants import CENT, HUNDRED, MAX_AMOUNT


def to_decimal(value: object) -> Decimal:
    """Convert *value* to ``Decimal`` going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value: object, field: str = "amount") -> Decimal:
    """Validate a positive money amount with at most 2 fractional digits.

    Raises:
        InvalidAmount: If the value is not a finite number, is <= 0, is larger
                       than the ledger columns hold, or has sub-cent precision.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number.")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{field} must be a number.")

    if not amount.is_finite():
        raise InvalidAmount(f"{field} must be a finite number.")
    if amount <= 0:
        raise InvalidAmount(f"{field} must be greater than zero.")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"{field} must not exceed {MAX_AMOUNT}.")
    if amount != amount.quantize(CENT):
        raise InvalidAmount(f"{field} must have at most 2 decimal places.")
    return amount.quantize(CENT)


def parse_percentage(value: object, field: str = "percentage") -> Decimal:
    """Validate a percentage in (0, 100] with at most 2 fractional digits.

    Raises:
        InvalidPercentage: If the value is not a finite number in (0, 100], or
                           is more precise than a hundredth of a percent.
    """
    if isinstance(value, bool):
        raise InvalidPercentage(f"{field} must be a number.")
    try:
        pct = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidPercentage(f"{field} must be a number.")

    if not pct.is_finite() or pct <= 0 or pct > HUNDRED:
        raise InvalidPercentage(f"{field} must be greater than 0 and at most 100.")
    if pct != pct.quantize(CENT):
        raise InvalidPercentage(f"{field} must have at most 2 decimal places.")
    return pct.quantize(CENT)
