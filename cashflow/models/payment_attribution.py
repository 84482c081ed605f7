"""PaymentAttribution model - "this much of this income funds this payment"."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class PaymentAttribution(Base):
    """Link between an income event and a payment it (partly) funds.

    Attributes:
        id: Opaque primary key.
        income_event_id: FK to IncomeEvent.
        payment_id: FK to Payment.
        amount: Attributed amount (> 0, 2 decimals).
        attribution_type: "manual" or "automatic".
        created_by: FamilyMember id of the actor.
        created_at: Record creation timestamp.
    """

    __tablename__ = "payment_attribution"

    id = Column(String(36), primary_key=True, default=new_id)
    income_event_id = Column(
        String(36), ForeignKey("income_event.id"), nullable=False, index=True
    )
    payment_id = Column(String(36), ForeignKey("payment.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    attribution_type = Column(String(20), default="manual", nullable=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    income_event = relationship("IncomeEvent", back_populates="attributions", lazy="select")
    payment = relationship("Payment", back_populates="attributions", lazy="select")
