"""BudgetAllocation model - one income event's share for one category."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class BudgetAllocation(Base):
    """Materialised split of an income event into a budget category.

    Rows are written in bulk by ``allocation_service.generate_allocations``
    and never partially updated.

    Attributes:
        id: Opaque primary key.
        income_event_id: FK to IncomeEvent.
        budget_category_id: FK to BudgetCategory.
        amount: Allocated money.
        percentage: Percentage actually applied (override or target).
    """

    __tablename__ = "budget_allocation"
    __table_args__ = (
        UniqueConstraint(
            "income_event_id", "budget_category_id", name="uq_allocation_income_category"
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    income_event_id = Column(
        String(36), ForeignKey("income_event.id"), nullable=False, index=True
    )
    budget_category_id = Column(String(36), ForeignKey("budget_category.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    income_event = relationship("IncomeEvent", back_populates="allocations", lazy="select")
    budget_category = relationship("BudgetCategory", lazy="joined")
