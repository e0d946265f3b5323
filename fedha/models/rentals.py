from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class Lessee(Base):
    __tablename__ = "lessees"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    unit_number = Column(String, nullable=False)
    rent_amount_cents = Column(Integer, nullable=False)
    deposit_amount_cents = Column(Integer, nullable=True)
    lease_start = Column(Date, nullable=False)
    lease_end = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
