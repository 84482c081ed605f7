"""SQLAlchemy models package for the cash-flow ledger.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from cashflow.models import IncomeEvent, Payment
"""

# Tenant boundary
from cashflow.models.family import Family, FamilyMember  # noqa: F401
from cashflow.models.bank_account import BankAccount  # noqa: F401

# Budget configuration
from cashflow.models.budget_category import BudgetCategory  # noqa: F401

# Cash-flow ledger
from cashflow.models.income_event import IncomeEvent  # noqa: F401
from cashflow.models.payment import Payment  # noqa: F401
from cashflow.models.payment_attribution import PaymentAttribution  # noqa: F401
from cashflow.models.budget_allocation import BudgetAllocation  # noqa: F401

# Bank feed
from cashflow.models.transaction import Transaction  # noqa: F401

# Cross-cutting concerns
from cashflow.models.audit_log import AuditLog  # noqa: F401

__all__ = [
    "Family",
    "FamilyMember",
    "BankAccount",
    "BudgetCategory",
    "IncomeEvent",
    "Payment",
    "PaymentAttribution",
    "BudgetAllocation",
    "Transaction",
    "AuditLog",
]
