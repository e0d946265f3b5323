from datetime import date

import pytest

from fedha.core.errors import NotAuthorized
from fedha.core.permissions import Role
from fedha.models.hospitality import Reservation
from fedha.models.payments import FeePayment, RentPayment
from fedha.services.bookings import GuestInfo, cancel_reservation, create_booking, record_reservation_payment
from fedha.services.dashboard import get_stats
from fedha.services.sales import SaleLineRequest, create_sale
from tests.fixtures_data import (
    CASHIER,
    OUTSIDER,
    add_catalog_item,
    add_lessee,
    add_member,
    add_principal,
    add_student,
    add_unit,
    seed_tenant,
)


def test_retail_stats_use_sales_and_distinct_customers(db):
    owner, tenant = seed_tenant(db, category="supermarket")
    cashier = add_principal(db, CASHIER)
    add_member(db, tenant, cashier, Role.CASHIER)
    item = add_catalog_item(db, tenant, stock=15, price_cents=100, min_stock_level=10)

    for name, phone in [("Juma", "0720"), ("Juma", "0720"), ("Wafula", ""), (None, None)]:
        create_sale(
            db,
            tenant_id=tenant.id,
            cashier_id=cashier.id,
            lines=[SaleLineRequest(item.id, 2, 100)],
            customer_name=name,
            customer_phone=phone,
        )

    stats = get_stats(db, principal_id=cashier.id, tenant_id=tenant.id)

    assert stats.category == "supermarket"
    assert len(stats.revenue_series) == 4
    assert {point.source for point in stats.revenue_series} == {"sales"}
    assert stats.total_revenue_cents == 800
    assert stats.customer_count == 2
    assert stats.low_stock_count == 1


def test_rentals_stats_count_paid_rent_and_active_lessees(db):
    owner, tenant = seed_tenant(db, category="rentals", name="Greenpark Apartments")
    lessee = add_lessee(db, tenant)
    add_lessee(db, tenant, name="Former Lessee", is_active=False)
    db.add_all(
        [
            RentPayment(tenant_id=tenant.id, lessee_id=lessee.id, amount_cents=1500000, period="2025-01",
                        due_date=date(2025, 1, 5), status="paid"),
            RentPayment(tenant_id=tenant.id, lessee_id=lessee.id, amount_cents=1500000, period="2025-02",
                        due_date=date(2025, 2, 5), status="pending"),
        ]
    )
    db.commit()

    stats = get_stats(db, principal_id=owner.id, tenant_id=tenant.id)

    assert [point.amount_cents for point in stats.revenue_series] == [1500000]
    assert stats.revenue_series[0].source == "rent_payments"
    assert stats.customer_count == 1
    assert stats.low_stock_count is None


def test_school_stats_use_fee_payments_and_active_students(db):
    owner, tenant = seed_tenant(db, category="school", name="Sunrise Academy")
    student = add_student(db, tenant)
    add_student(db, tenant, admission_number="ADM-002")
    db.add(FeePayment(tenant_id=tenant.id, student_id=student.id, amount_cents=2000000, term="Term 1",
                      due_date=date(2025, 1, 15), status="paid"))
    db.commit()

    stats = get_stats(db, principal_id=owner.id, tenant_id=tenant.id)

    assert stats.total_revenue_cents == 2000000
    assert stats.customer_count == 2


def test_hospitality_stats_skip_cancelled_reservations(db):
    owner, tenant = seed_tenant(db, category="hotel", name="Lakeview Hotel")
    room = add_unit(db, tenant)
    kept = create_booking(
        db,
        tenant_id=tenant.id,
        principal_id=owner.id,
        guest=GuestInfo(name="Amina", phone="0711"),
        check_in=date(2025, 1, 10),
        check_out=date(2025, 1, 12),
        guests_count=2,
        total_amount_cents=5000,
        resource_unit_id=room.id,
    )
    record_reservation_payment(db, tenant_id=tenant.id, principal_id=owner.id, reservation_id=kept.id, amount_cents=5000)
    dropped = create_booking(
        db,
        tenant_id=tenant.id,
        principal_id=owner.id,
        guest=GuestInfo(name="Brian", phone="0799"),
        check_in=date(2025, 2, 1),
        check_out=date(2025, 2, 3),
        guests_count=1,
        total_amount_cents=4000,
        resource_unit_id=room.id,
    )
    cancel_reservation(db, tenant_id=tenant.id, principal_id=owner.id, reservation_id=dropped.id)

    stats = get_stats(db, principal_id=owner.id, tenant_id=tenant.id)

    assert db.query(Reservation).count() == 2
    assert [point.amount_cents for point in stats.revenue_series] == [5000]
    assert stats.customer_count == 1


def test_outsider_cannot_read_stats(db):
    _, tenant = seed_tenant(db)
    outsider = add_principal(db, OUTSIDER)

    with pytest.raises(NotAuthorized):
        get_stats(db, principal_id=outsider.id, tenant_id=tenant.id)
