from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class RentPayment(Base):
    __tablename__ = "rent_payments"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    lessee_id = Column(Integer, ForeignKey("lessees.id", ondelete="CASCADE"), index=True, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    period = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class FeePayment(Base):
    __tablename__ = "fee_payments"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    term = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
