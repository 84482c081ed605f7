"""Payment model - a scheduled or completed outflow."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class Payment(Base):
    """A scheduled or completed outflow owed to a payee.

    Attributes:
        id: Opaque primary key.
        family_id: Owning family.
        payee: Name of the payee, matched against bank merchant text.
        amount: Amount due (> 0).
        due_date: Date the payment is due.
        paid_date: Date it was paid (set on ``paid``).
        paid_amount: Amount actually paid.
        status: "scheduled", "paid", "overdue" or "cancelled".
        budget_category_id: Optional FK to the BudgetCategory it draws from.
    """

    __tablename__ = "payment"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    payee = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid_date = Column(Date, nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    status = Column(String(20), default="scheduled", nullable=False)
    # "scheduled", "paid", "overdue", "cancelled"
    budget_category_id = Column(String(36), ForeignKey("budget_category.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    attributions = relationship(
        "PaymentAttribution", back_populates="payment", lazy="select"
    )
