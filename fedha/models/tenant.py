from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class TenantCategory(str, Enum):
    HARDWARE = "hardware"
    SUPERMARKET = "supermarket"
    RENTALS = "rentals"
    SHORT_STAY = "short_stay"
    HOTEL = "hotel"
    SCHOOL = "school"


RETAIL_CATEGORIES = frozenset({TenantCategory.HARDWARE, TenantCategory.SUPERMARKET})
HOSPITALITY_CATEGORIES = frozenset({TenantCategory.HOTEL, TenantCategory.SHORT_STAY})


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("principals.id"), nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    phone = Column(String, nullable=True)
    location = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("Principal")
