"""Reusable records and seed helpers for backend test scenarios."""

from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fedha.core.database import Base
from fedha.core.permissions import Role
from fedha.models.catalog import CatalogItem
from fedha.models.hospitality import ResourceKind, ResourceStatus, ResourceUnit
from fedha.models.membership import Membership
from fedha.models.principal import Principal
from fedha.models.rentals import Lessee
from fedha.models.school import Student
from fedha.services.tenants import create_tenant

OWNER = {"email": "owner@example.com", "full_name": "Wanjiru Owner", "phone": "0700000001"}
MANAGER = {"email": "manager@example.com", "full_name": "Otieno Manager", "phone": "0700000002"}
CASHIER = {"email": "cashier@example.com", "full_name": "Achieng Cashier", "phone": "0700000003"}
FRONT_DESK = {"email": "desk@example.com", "full_name": "Kamau Desk", "phone": "0700000004"}
OUTSIDER = {"email": "outsider@example.com", "full_name": "Njeri Outsider", "phone": "0700000005"}
UNKNOWN_EMAIL = "noone@example.com"

STOCK_SCENARIO = {
    "initial_stock": 5,
    "first_quantity": 3,
    "unit_price_cents": 10,
    "expected_total_cents": 30,
    "remaining_stock": 2,
    "second_quantity": 4,
}

BOOKING_SCENARIO = {
    "guest_name": "Amina Guest",
    "guest_phone": "0711000000",
    "check_in": date(2025, 1, 10),
    "check_out": date(2025, 1, 12),
    "guests_count": 2,
    "total_amount_cents": 5000,
}


def build_session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_principal(db, data):
    principal = Principal(**data)
    db.add(principal)
    db.commit()
    db.refresh(principal)
    return principal


def add_member(db, tenant, principal, role, is_active=True):
    membership = Membership(
        tenant_id=tenant.id,
        principal_id=principal.id,
        role=role.value if isinstance(role, Role) else role,
        is_active=is_active,
    )
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return membership


def seed_tenant(db, category="hardware", name="Mjengo Hardware"):
    owner = add_principal(db, OWNER)
    tenant = create_tenant(db, owner_id=owner.id, name=name, category=category)
    return owner, tenant


def add_catalog_item(db, tenant, stock=5, price_cents=10, name="Cement 50kg", min_stock_level=0):
    item = CatalogItem(
        tenant_id=tenant.id,
        name=name,
        sale_price_cents=price_cents,
        stock_quantity=stock,
        min_stock_level=min_stock_level,
        is_active=True,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_unit(db, tenant, kind=ResourceKind.ROOM, label="Room 101"):
    unit = ResourceUnit(
        tenant_id=tenant.id,
        kind=kind.value,
        label=label,
        capacity=2,
        rate_per_night_cents=2500,
        status=(ResourceStatus.AVAILABLE if kind is ResourceKind.ROOM else ResourceStatus.LISTED).value,
    )
    db.add(unit)
    db.commit()
    db.refresh(unit)
    return unit


def add_lessee(db, tenant, name="Baraka Lessee", is_active=True):
    lessee = Lessee(
        tenant_id=tenant.id,
        name=name,
        phone="0722000000",
        unit_number="A1",
        rent_amount_cents=1500000,
        lease_start=date(2025, 1, 1),
        is_active=is_active,
    )
    db.add(lessee)
    db.commit()
    db.refresh(lessee)
    return lessee


def add_student(db, tenant, admission_number="ADM-001", is_active=True):
    student = Student(
        tenant_id=tenant.id,
        admission_number=admission_number,
        first_name="Zawadi",
        last_name="Mwangi",
        class_level="Grade 4",
        parent_name="Halima Mwangi",
        parent_phone="0733000000",
        fee_amount_cents=2000000,
        is_active=is_active,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student
