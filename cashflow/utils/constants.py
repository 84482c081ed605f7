"""
Application-wide constants for the cash-flow engine.

Defines domain enumerations and business rule thresholds used across
routers, services, and models.
"""

from decimal import Decimal
from typing import Final

# ---------------------------------------------------------------------------
# Member roles
# ---------------------------------------------------------------------------

ROLES: Final[list[str]] = [
    "admin",
    "editor",
    "viewer",
]

WRITE_ROLES: Final[tuple[str, ...]] = ("admin", "editor")

# ---------------------------------------------------------------------------
# Lifecycle states
# ---------------------------------------------------------------------------

INCOME_STATUSES: Final[list[str]] = ["scheduled", "received", "cancelled"]

PAYMENT_STATUSES: Final[list[str]] = ["scheduled", "paid", "overdue", "cancelled"]

# Payments the matcher may propose a bank line for
PAYMENT_UNPAID: Final[frozenset[str]] = frozenset({"scheduled", "overdue"})

ATTRIBUTION_TYPES: Final[list[str]] = ["manual", "automatic"]

# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

CENT: Final[Decimal] = Decimal("0.01")
ZERO: Final[Decimal] = Decimal("0.00")
HUNDRED: Final[Decimal] = Decimal("100")

# Largest amount a Numeric(12, 2) column holds
MAX_AMOUNT: Final[Decimal] = Decimal("9999999999.99")

# Category percentages within this distance of 100 count as "sums to 100"
PERCENTAGE_EPSILON: Final[Decimal] = Decimal("0.01")

# ---------------------------------------------------------------------------
# Transaction matcher
# ---------------------------------------------------------------------------

MATCH_EXACT: Final[str] = "exact_amount"
MATCH_MERCHANT: Final[str] = "merchant_match"
MATCH_CLOSE: Final[str] = "close_amount"
MATCH_DATE_RANGE: Final[str] = "date_range"

# Amount difference below which two amounts are the same to the cent
EXACT_AMOUNT_EPSILON: Final[Decimal] = Decimal("0.005")

# Upper bound on the matcher date window, in days either side
MAX_DATE_TOLERANCE_DAYS: Final[int] = 366

CONFIDENCE_EXACT: Final[float] = 1.0
CONFIDENCE_MERCHANT: Final[float] = 0.9
CONFIDENCE_CLOSE_MIN: Final[float] = 0.5
CONFIDENCE_CLOSE_MAX: Final[float] = 0.85
CONFIDENCE_DATE_MIN: Final[float] = 0.3
CONFIDENCE_DATE_MAX: Final[float] = 0.5
