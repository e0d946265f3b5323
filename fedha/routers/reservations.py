from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.hospitality import Reservation, ResourceUnit
from fedha.models.principal import Principal
from fedha.services.bookings import (
    GuestInfo,
    cancel_reservation,
    check_in_reservation,
    check_out_reservation,
    create_booking,
    create_resource_unit,
    list_reservations,
    list_resource_units,
    record_reservation_payment,
    update_resource_status,
)

router = APIRouter(prefix="/api/tenants/{tenant_id}", tags=["reservations"])


class ReservationCreate(BaseModel):
    guest_name: str = Field(..., min_length=1)
    guest_phone: str = Field(..., min_length=1)
    guest_email: Optional[EmailStr] = None
    check_in: date
    check_out: date
    guests_count: int = 1
    total_amount_cents: int
    resource_unit_id: Optional[int] = None
    notes: Optional[str] = None


class ReservationPayment(BaseModel):
    amount_cents: int = Field(..., gt=0)


class ResourceUnitCreate(BaseModel):
    kind: str = "room"
    label: str = Field(..., min_length=1)
    rate_per_night_cents: int = Field(..., ge=0)
    capacity: Optional[int] = None


class ResourceStatusUpdate(BaseModel):
    status: str


def _reservation_to_dict(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "tenant_id": reservation.tenant_id,
        "resource_unit_id": reservation.resource_unit_id,
        "guest_name": reservation.guest_name,
        "guest_phone": reservation.guest_phone,
        "guest_email": reservation.guest_email,
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "guests_count": reservation.guests_count,
        "total_amount_cents": reservation.total_amount_cents,
        "paid_amount_cents": reservation.paid_amount_cents,
        "status": reservation.status,
        "payment_status": reservation.payment_status,
        "notes": reservation.notes,
    }


def _unit_to_dict(unit: ResourceUnit) -> dict:
    return {
        "id": unit.id,
        "tenant_id": unit.tenant_id,
        "kind": unit.kind,
        "label": unit.label,
        "capacity": unit.capacity,
        "rate_per_night_cents": unit.rate_per_night_cents,
        "status": unit.status,
    }


@router.post("/reservations", status_code=201)
def book(
    tenant_id: int,
    payload: ReservationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reservation = create_booking(
        db,
        tenant_id=tenant_id,
        principal_id=principal.id,
        guest=GuestInfo(name=payload.guest_name, phone=payload.guest_phone, email=payload.guest_email),
        check_in=payload.check_in,
        check_out=payload.check_out,
        guests_count=payload.guests_count,
        total_amount_cents=payload.total_amount_cents,
        resource_unit_id=payload.resource_unit_id,
        notes=payload.notes,
    )
    return _reservation_to_dict(reservation)


@router.get("/reservations")
def reservations(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [_reservation_to_dict(r) for r in list_reservations(db, tenant_id=tenant_id, principal_id=principal.id)]


@router.post("/reservations/{reservation_id}/check-in")
def check_in(
    tenant_id: int,
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reservation = check_in_reservation(
        db, tenant_id=tenant_id, principal_id=principal.id, reservation_id=reservation_id
    )
    return _reservation_to_dict(reservation)


@router.post("/reservations/{reservation_id}/check-out")
def check_out(
    tenant_id: int,
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reservation = check_out_reservation(
        db, tenant_id=tenant_id, principal_id=principal.id, reservation_id=reservation_id
    )
    return _reservation_to_dict(reservation)


@router.post("/reservations/{reservation_id}/cancel")
def cancel(
    tenant_id: int,
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reservation = cancel_reservation(
        db, tenant_id=tenant_id, principal_id=principal.id, reservation_id=reservation_id
    )
    return _reservation_to_dict(reservation)


@router.post("/reservations/{reservation_id}/payments")
def pay(
    tenant_id: int,
    reservation_id: int,
    payload: ReservationPayment,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reservation = record_reservation_payment(
        db,
        tenant_id=tenant_id,
        principal_id=principal.id,
        reservation_id=reservation_id,
        amount_cents=payload.amount_cents,
    )
    return _reservation_to_dict(reservation)


@router.patch("/resource-units/{resource_unit_id}/status")
def set_unit_status(
    tenant_id: int,
    resource_unit_id: int,
    payload: ResourceStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    unit = update_resource_status(
        db,
        tenant_id=tenant_id,
        principal_id=principal.id,
        resource_unit_id=resource_unit_id,
        status=payload.status,
    )
    return _unit_to_dict(unit)


@router.post("/resource-units", status_code=201)
def add_unit(
    tenant_id: int,
    payload: ResourceUnitCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    unit = create_resource_unit(db, tenant_id=tenant_id, principal_id=principal.id, **payload.model_dump())
    return _unit_to_dict(unit)


@router.get("/resource-units")
def units(
    tenant_id: int,
    kind: Optional[str] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [_unit_to_dict(u) for u in list_resource_units(db, tenant_id=tenant_id, principal_id=principal.id, kind=kind)]
