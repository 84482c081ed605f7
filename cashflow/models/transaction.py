"""Transaction model - a bank ledger line synchronised from the bank feed."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Text

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class Transaction(Base):
    """An observed bank line item.  Negative amounts are outflows.

    Attributes:
        id: Opaque primary key.
        bank_account_id: FK to BankAccount (which carries the family).
        amount: Signed amount.
        date: Posting date.
        description: Raw bank description.
        merchant_name: Cleaned merchant name, when the feed provides one.
        pending: Whether the bank still reports the line as pending.
        matched_payment_id: Payment this line was confirmed against.
    """

    __tablename__ = "bank_transaction"

    id = Column(String(36), primary_key=True, default=new_id)
    bank_account_id = Column(
        String(36), ForeignKey("bank_account.id"), nullable=False, index=True
    )
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    merchant_name = Column(String(255), nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    matched_payment_id = Column(String(36), ForeignKey("payment.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
