"""IncomeEvent model - a scheduled or received inflow."""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class IncomeEvent(Base):
    """A scheduled or received inflow of money.

    ``allocated_amount`` and ``remaining_amount`` are a materialised view of
    the ``PaymentAttribution`` rows referencing this event.  They are only
    ever written by ``attribution_service.recompute_income_totals``, which
    rebuilds them from a SUM over the detail table.

    Attributes:
        id: Opaque primary key.
        family_id: Owning family.
        name: Display label, e.g. "Salary".
        amount: Scheduled amount (> 0).
        scheduled_date: Expected date of the inflow.
        actual_date: Date the inflow was received.
        actual_amount: Amount actually received (set on ``received``).
        allocated_amount: Sum of attribution amounts (derived).
        remaining_amount: Effective amount minus allocated (derived).
        status: "scheduled", "received" or "cancelled".
        source: Free-text origin (employer, client...).
        notes: Free-text notes.
    """

    __tablename__ = "income_event"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    actual_date = Column(Date, nullable=True)
    actual_amount = Column(Numeric(12, 2), nullable=True)
    allocated_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    remaining_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    status = Column(String(20), default="scheduled", nullable=False)
    # "scheduled", "received", "cancelled"
    source = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    attributions = relationship(
        "PaymentAttribution", back_populates="income_event", lazy="select"
    )
    allocations = relationship(
        "BudgetAllocation", back_populates="income_event", lazy="select"
    )

    @property
    def effective_amount(self) -> Decimal:
        """Actual amount once received, otherwise the scheduled amount."""
        if self.status == "received" and self.actual_amount is not None:
            return Decimal(self.actual_amount)
        return Decimal(self.amount)
