from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String

from fedha.core.database import Base
from fedha.core.timeutils import utcnow


class CatalogItem(Base):
    __tablename__ = "catalog_items"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_catalog_items_stock_non_negative"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    unit = Column(String, nullable=False, default="pcs")
    cost_price_cents = Column(Integer, nullable=True)
    sale_price_cents = Column(Integer, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
