"""AuditLog model - append-only record of ledger mutations."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    family_member_id = Column(String(36), nullable=True)
    action = Column(String(20), nullable=False)
    # "create", "update", "delete"
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
