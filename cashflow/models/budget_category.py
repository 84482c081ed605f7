"""BudgetCategory model - a percentage-based bucket income is split across."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class BudgetCategory(Base):
    """A named bucket with a target share of income, e.g. "Needs" 50 %.

    Attributes:
        id: Opaque primary key.
        family_id: Owning family.
        name: Display name.
        target_percentage: Share of income in (0, 100].
        color: Optional hex colour for the UI.
        sort_order: Allocation order; the last category absorbs rounding.
        is_active: Inactive categories are ignored by the allocator.
    """

    __tablename__ = "budget_category"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    target_percentage = Column(Numeric(5, 2), nullable=False)
    color = Column(String(7), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
