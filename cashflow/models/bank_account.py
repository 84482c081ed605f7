"""BankAccount model - a synchronised account whose transactions feed the matcher."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class BankAccount(Base):
    __tablename__ = "bank_account"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    institution_name = Column(String(255), nullable=False)
    account_name = Column(String(255), nullable=False)
    account_type = Column(String(20), nullable=False, default="checking")
    # "checking", "savings", "credit", "loan"
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
