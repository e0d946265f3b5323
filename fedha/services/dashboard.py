from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from fedha.core.errors import NotAuthorized
from fedha.core.permissions import Action
from fedha.models.hospitality import Reservation, ReservationStatus
from fedha.models.payments import FeePayment, PaymentStatus, RentPayment
from fedha.models.rentals import Lessee
from fedha.models.sale import Sale
from fedha.models.school import Student
from fedha.models.tenant import HOSPITALITY_CATEGORIES, RETAIL_CATEGORIES, Tenant, TenantCategory
from fedha.services.authorization_service import AuthorizationService
from fedha.services.sales import count_low_stock

logger = logging.getLogger(__name__)

SOURCE_SALES = "sales"
SOURCE_RENT = "rent_payments"
SOURCE_FEES = "fee_payments"
SOURCE_RESERVATIONS = "reservations"


@dataclass(frozen=True)
class RevenuePoint:
    amount_cents: int
    occurred_at: datetime
    source: str


@dataclass
class DashboardStats:
    category: str
    revenue_series: list[RevenuePoint] = field(default_factory=list)
    customer_count: int = 0
    low_stock_count: int | None = None

    @property
    def total_revenue_cents(self) -> int:
        return sum(point.amount_cents for point in self.revenue_series)


def _points(rows, source: str) -> list[RevenuePoint]:
    return [
        RevenuePoint(amount_cents=int(amount or 0), occurred_at=occurred_at, source=source)
        for amount, occurred_at in rows
    ]


def _sales_series(db: Session, tenant_id: int) -> list[RevenuePoint]:
    rows = db.query(Sale.total_cents, Sale.created_at).filter(Sale.tenant_id == tenant_id).all()
    return _points(rows, SOURCE_SALES)


def _sales_customers(db: Session, tenant_id: int) -> int:
    # Phone identifies a customer; walk-ins with only a name fall back to it.
    identity = func.coalesce(
        func.nullif(func.trim(Sale.customer_phone), ""),
        func.nullif(func.trim(Sale.customer_name), ""),
    )
    return int(
        db.query(func.count(func.distinct(identity))).filter(Sale.tenant_id == tenant_id).scalar() or 0
    )


def _rent_series(db: Session, tenant_id: int) -> list[RevenuePoint]:
    rows = (
        db.query(RentPayment.amount_cents, func.coalesce(RentPayment.paid_at, RentPayment.created_at))
        .filter(RentPayment.tenant_id == tenant_id, RentPayment.status == PaymentStatus.PAID.value)
        .all()
    )
    return _points(rows, SOURCE_RENT)


def _fee_series(db: Session, tenant_id: int) -> list[RevenuePoint]:
    rows = (
        db.query(FeePayment.amount_cents, func.coalesce(FeePayment.paid_at, FeePayment.created_at))
        .filter(FeePayment.tenant_id == tenant_id, FeePayment.status == PaymentStatus.PAID.value)
        .all()
    )
    return _points(rows, SOURCE_FEES)


def _reservation_series(db: Session, tenant_id: int) -> list[RevenuePoint]:
    rows = (
        db.query(Reservation.paid_amount_cents, Reservation.created_at)
        .filter(
            Reservation.tenant_id == tenant_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
        .all()
    )
    return _points(rows, SOURCE_RESERVATIONS)


def _count_active(db: Session, model, tenant_id: int) -> int:
    return db.query(model).filter(model.tenant_id == tenant_id, model.is_active.is_(True)).count()


def _guest_count(db: Session, tenant_id: int) -> int:
    return int(
        db.query(func.count(func.distinct(Reservation.guest_phone)))
        .filter(
            Reservation.tenant_id == tenant_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
        .scalar()
        or 0
    )


def get_stats(db: Session, *, principal_id: int, tenant_id: int) -> DashboardStats:
    """Revenue series and customer count for the tenant's category.

    The series is returned in storage order; callers bucket and sort it.
    """
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.VIEW_DASHBOARD
    )
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if tenant is None:
        raise NotAuthorized()

    try:
        category = TenantCategory(tenant.category)
    except ValueError:
        logger.warning("Unknown tenant category: tenant_id=%s category=%s", tenant_id, tenant.category)
        return DashboardStats(category=str(tenant.category))

    stats = DashboardStats(category=category.value)
    if category in RETAIL_CATEGORIES:
        stats.revenue_series = _sales_series(db, tenant_id)
        stats.customer_count = _sales_customers(db, tenant_id)
        stats.low_stock_count = count_low_stock(db, tenant_id)
    elif category is TenantCategory.RENTALS:
        stats.revenue_series = _rent_series(db, tenant_id)
        stats.customer_count = _count_active(db, Lessee, tenant_id)
    elif category is TenantCategory.SCHOOL:
        stats.revenue_series = _fee_series(db, tenant_id)
        stats.customer_count = _count_active(db, Student, tenant_id)
    elif category in HOSPITALITY_CATEGORIES:
        stats.revenue_series = _reservation_series(db, tenant_id)
        stats.customer_count = _guest_count(db, tenant_id)
    return stats
