"""Family and FamilyMember models - the tenant boundary of the ledger."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from cashflow.database import Base
from cashflow.models._common import new_id, utcnow


class Family(Base):
    """A household; every ledger row is scoped to exactly one family.

    Attributes:
        id: Opaque primary key.
        name: Display name.
        created_at: Record creation timestamp.
    """

    __tablename__ = "family"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    members = relationship("FamilyMember", back_populates="family", lazy="select")


class FamilyMember(Base):
    """A user that belongs to a family.

    Roles:
        - admin: Full access, including category configuration.
        - editor: May record attributions, allocations and confirm matches.
        - viewer: Read-only.

    Attributes:
        id: Opaque primary key (also the JWT ``sub`` claim).
        family_id: FK to Family.
        email: Unique login.
        password_hash: Bcrypt hash.
        first_name: Given name.
        last_name: Family name.
        role: One of ``constants.ROLES``.
        active: Whether the account may log in.
        last_login_at: Timestamp of the last successful login.
    """

    __tablename__ = "family_member"

    id = Column(String(36), primary_key=True, default=new_id)
    family_id = Column(String(36), ForeignKey("family.id"), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    role = Column(String(20), default="viewer", nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    family = relationship("Family", back_populates="members", lazy="select")
