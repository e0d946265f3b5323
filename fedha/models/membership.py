from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("tenant_id", "principal_id", name="uq_memberships_tenant_principal"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    principal_id = Column(Integer, ForeignKey("principals.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    invited_by_id = Column(Integer, ForeignKey("principals.id"), nullable=True)
    invited_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
