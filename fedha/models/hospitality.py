from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class ResourceKind(str, Enum):
    ROOM = "room"
    LISTING = "listing"


class ResourceStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    LISTED = "listed"
    BOOKED = "booked"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class ResourceUnit(Base):
    __tablename__ = "resource_units"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    kind = Column(String, nullable=False, default=ResourceKind.ROOM.value)
    label = Column(String, nullable=False)
    capacity = Column(Integer, nullable=True)
    rate_per_night_cents = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=ResourceStatus.AVAILABLE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    resource_unit_id = Column(Integer, ForeignKey("resource_units.id", ondelete="SET NULL"), index=True, nullable=True)
    guest_name = Column(String, nullable=False)
    guest_phone = Column(String, nullable=False)
    guest_email = Column(String, nullable=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests_count = Column(Integer, nullable=False)
    total_amount_cents = Column(Integer, nullable=False)
    paid_amount_cents = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default=ReservationStatus.CONFIRMED.value)
    payment_status = Column(String, nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
