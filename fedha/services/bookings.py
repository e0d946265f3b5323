from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import BookingConflict, NotFound, ValidationError
from fedha.core.permissions import Action
from fedha.core.timeutils import utcnow
from fedha.models.hospitality import (
    Reservation,
    ReservationStatus,
    ResourceKind,
    ResourceStatus,
    ResourceUnit,
)
from fedha.models.payments import PaymentStatus
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)

# Reservations in these states still hold their unit.
HOLDING_STATUSES = (ReservationStatus.CONFIRMED.value, ReservationStatus.CHECKED_IN.value)

BOOKED_STATUS = {
    ResourceKind.ROOM: ResourceStatus.OCCUPIED,
    ResourceKind.LISTING: ResourceStatus.BOOKED,
}
AFTER_CHECK_OUT_STATUS = {
    ResourceKind.ROOM: ResourceStatus.CLEANING,
    ResourceKind.LISTING: ResourceStatus.LISTED,
}
RELEASED_STATUS = {
    ResourceKind.ROOM: ResourceStatus.AVAILABLE,
    ResourceKind.LISTING: ResourceStatus.LISTED,
}
STATUSES_BY_KIND = {
    ResourceKind.ROOM: {
        ResourceStatus.AVAILABLE,
        ResourceStatus.OCCUPIED,
        ResourceStatus.CLEANING,
        ResourceStatus.MAINTENANCE,
    },
    ResourceKind.LISTING: {
        ResourceStatus.LISTED,
        ResourceStatus.BOOKED,
        ResourceStatus.MAINTENANCE,
    },
}


@dataclass(frozen=True)
class GuestInfo:
    name: str
    phone: str
    email: str | None = None


def _validate_booking_input(guest: GuestInfo, check_in: date, check_out: date, guests_count: int, total_amount_cents: int) -> None:
    if check_in is None or check_out is None or not check_in < check_out:
        raise ValidationError("Check-in must be before check-out")
    if not (guest.name or "").strip() or not (guest.phone or "").strip():
        raise ValidationError("Guest name and phone are required")
    if guests_count is None or guests_count < 1:
        raise ValidationError("At least one guest is required")
    if total_amount_cents is None or total_amount_cents < 0:
        raise ValidationError("Total amount cannot be negative")


def _lock_unit(db: Session, tenant_id: int, unit_id: int) -> ResourceUnit | None:
    return (
        db.query(ResourceUnit)
        .filter(ResourceUnit.id == unit_id, ResourceUnit.tenant_id == tenant_id)
        .with_for_update()
        .first()
    )


def _has_overlap(
    db: Session,
    tenant_id: int,
    unit_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: int | None = None,
) -> bool:
    query = db.query(Reservation.id).filter(
        Reservation.tenant_id == tenant_id,
        Reservation.resource_unit_id == unit_id,
        Reservation.status.in_(HOLDING_STATUSES),
        Reservation.check_in < check_out,
        Reservation.check_out > check_in,
    )
    if exclude_reservation_id is not None:
        query = query.filter(Reservation.id != exclude_reservation_id)
    return query.first() is not None


def _unit_in_use(db: Session, tenant_id: int, unit_id: int, exclude_reservation_id: int | None = None) -> bool:
    """A unit is in use while a guest is checked in or a confirmed stay covers today."""
    today = utcnow().date()
    query = db.query(Reservation.id).filter(
        Reservation.tenant_id == tenant_id,
        Reservation.resource_unit_id == unit_id,
        or_(
            Reservation.status == ReservationStatus.CHECKED_IN.value,
            and_(
                Reservation.status == ReservationStatus.CONFIRMED.value,
                Reservation.check_in <= today,
                Reservation.check_out > today,
            ),
        ),
    )
    if exclude_reservation_id is not None:
        query = query.filter(Reservation.id != exclude_reservation_id)
    return query.first() is not None


def _unit_kind(unit: ResourceUnit) -> ResourceKind:
    try:
        return ResourceKind(unit.kind)
    except ValueError:
        return ResourceKind.ROOM


def create_booking(
    db: Session,
    *,
    tenant_id: int,
    principal_id: int,
    guest: GuestInfo,
    check_in: date,
    check_out: date,
    guests_count: int,
    total_amount_cents: int,
    resource_unit_id: int | None = None,
    notes: str | None = None,
) -> Reservation:
    """Create a confirmed reservation and mark its unit as taken, atomically."""
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESERVATIONS
        )
        _validate_booking_input(guest, check_in, check_out, guests_count, total_amount_cents)

        unit = None
        if resource_unit_id is not None:
            unit = _lock_unit(db, tenant_id, resource_unit_id)
            if unit is None:
                raise ValidationError(f"Unknown resource unit {resource_unit_id}")
            if _has_overlap(db, tenant_id, unit.id, check_in, check_out):
                raise BookingConflict()

        reservation = Reservation(
            tenant_id=tenant_id,
            resource_unit_id=unit.id if unit is not None else None,
            guest_name=guest.name.strip(),
            guest_phone=guest.phone.strip(),
            guest_email=(guest.email or "").strip() or None,
            check_in=check_in,
            check_out=check_out,
            guests_count=guests_count,
            total_amount_cents=total_amount_cents,
            paid_amount_cents=0,
            status=ReservationStatus.CONFIRMED.value,
            payment_status=(PaymentStatus.PAID if total_amount_cents == 0 else PaymentStatus.PENDING).value,
            notes=notes,
        )
        db.add(reservation)

        if unit is not None:
            unit.status = BOOKED_STATUS[_unit_kind(unit)].value
        db.flush()

    db.refresh(reservation)
    logger.info(
        "Reservation created: tenant_id=%s reservation_id=%s resource_unit_id=%s check_in=%s check_out=%s",
        tenant_id,
        reservation.id,
        reservation.resource_unit_id,
        check_in,
        check_out,
    )
    return reservation


def _get_reservation_for_update(db: Session, tenant_id: int, reservation_id: int) -> Reservation:
    reservation = (
        db.query(Reservation)
        .filter(Reservation.id == reservation_id, Reservation.tenant_id == tenant_id)
        .with_for_update()
        .first()
    )
    if reservation is None:
        raise NotFound("Reservation not found")
    return reservation


def _transition(
    db: Session,
    *,
    tenant_id: int,
    principal_id: int,
    reservation_id: int,
    expected: ReservationStatus,
    target: ReservationStatus,
    unit_status: dict[ResourceKind, ResourceStatus] | None,
) -> Reservation:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESERVATIONS
        )
        reservation = _get_reservation_for_update(db, tenant_id, reservation_id)
        if reservation.status != expected.value:
            raise ValidationError(f"Reservation is {reservation.status}, expected {expected.value}")

        reservation.status = target.value
        if target is ReservationStatus.CANCELLED and reservation.payment_status == PaymentStatus.PENDING.value:
            reservation.payment_status = PaymentStatus.CANCELLED.value

        if unit_status is not None and reservation.resource_unit_id is not None:
            unit = _lock_unit(db, tenant_id, reservation.resource_unit_id)
            if unit is not None and not _unit_in_use(db, tenant_id, unit.id, exclude_reservation_id=reservation.id):
                unit.status = unit_status[_unit_kind(unit)].value
        db.flush()

    db.refresh(reservation)
    logger.info(
        "Reservation %s: tenant_id=%s reservation_id=%s",
        target.value,
        tenant_id,
        reservation.id,
    )
    return reservation


def check_in_reservation(db: Session, *, tenant_id: int, principal_id: int, reservation_id: int) -> Reservation:
    return _transition(
        db,
        tenant_id=tenant_id,
        principal_id=principal_id,
        reservation_id=reservation_id,
        expected=ReservationStatus.CONFIRMED,
        target=ReservationStatus.CHECKED_IN,
        unit_status=None,
    )


def check_out_reservation(db: Session, *, tenant_id: int, principal_id: int, reservation_id: int) -> Reservation:
    return _transition(
        db,
        tenant_id=tenant_id,
        principal_id=principal_id,
        reservation_id=reservation_id,
        expected=ReservationStatus.CHECKED_IN,
        target=ReservationStatus.CHECKED_OUT,
        unit_status=AFTER_CHECK_OUT_STATUS,
    )


def cancel_reservation(db: Session, *, tenant_id: int, principal_id: int, reservation_id: int) -> Reservation:
    return _transition(
        db,
        tenant_id=tenant_id,
        principal_id=principal_id,
        reservation_id=reservation_id,
        expected=ReservationStatus.CONFIRMED,
        target=ReservationStatus.CANCELLED,
        unit_status=RELEASED_STATUS,
    )


def record_reservation_payment(
    db: Session,
    *,
    tenant_id: int,
    principal_id: int,
    reservation_id: int,
    amount_cents: int,
) -> Reservation:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESERVATIONS
        )
        if amount_cents is None or amount_cents <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        reservation = _get_reservation_for_update(db, tenant_id, reservation_id)
        if reservation.status == ReservationStatus.CANCELLED.value:
            raise ValidationError("Cannot record a payment on a cancelled reservation")

        paid = int(reservation.paid_amount_cents or 0) + amount_cents
        if paid > int(reservation.total_amount_cents):
            raise ValidationError("Payment exceeds the outstanding balance")

        reservation.paid_amount_cents = paid
        if paid >= int(reservation.total_amount_cents):
            reservation.payment_status = PaymentStatus.PAID.value
        db.flush()

    db.refresh(reservation)
    return reservation


def update_resource_status(
    db: Session,
    *,
    tenant_id: int,
    principal_id: int,
    resource_unit_id: int,
    status: str | ResourceStatus,
) -> ResourceUnit:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESOURCE_STATUS
        )
        try:
            target = ResourceStatus((status.value if isinstance(status, ResourceStatus) else str(status)).strip().lower())
        except ValueError as exc:
            raise ValidationError("Unknown resource status") from exc

        unit = _lock_unit(db, tenant_id, resource_unit_id)
        if unit is None:
            raise NotFound("Resource unit not found")
        if target not in STATUSES_BY_KIND[_unit_kind(unit)]:
            raise ValidationError(f"Status {target.value} does not apply to a {unit.kind}")
        unit.status = target.value
        db.flush()

    db.refresh(unit)
    return unit


def list_reservations(db: Session, *, tenant_id: int, principal_id: int) -> list[Reservation]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESERVATIONS
    )
    return (
        db.query(Reservation)
        .filter(Reservation.tenant_id == tenant_id)
        .order_by(Reservation.check_in.asc(), Reservation.id.asc())
        .all()
    )


def create_resource_unit(
    db: Session,
    *,
    tenant_id: int,
    principal_id: int,
    kind: str | ResourceKind,
    label: str,
    rate_per_night_cents: int,
    capacity: int | None = None,
) -> ResourceUnit:
    """Add a room or a short-stay listing; it starts out free to book."""
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RECORDS
        )
        try:
            parsed_kind = ResourceKind((kind.value if isinstance(kind, ResourceKind) else str(kind)).strip().lower())
        except ValueError as exc:
            raise ValidationError("Unknown resource kind") from exc
        if not (label or "").strip():
            raise ValidationError("Label is required")
        if rate_per_night_cents is None or rate_per_night_cents < 0:
            raise ValidationError("Rate cannot be negative")
        if capacity is not None and capacity < 1:
            raise ValidationError("Capacity must be at least one")

        unit = ResourceUnit(
            tenant_id=tenant_id,
            kind=parsed_kind.value,
            label=label.strip(),
            capacity=capacity,
            rate_per_night_cents=rate_per_night_cents,
            status=RELEASED_STATUS[parsed_kind].value,
        )
        db.add(unit)
        db.flush()

    db.refresh(unit)
    logger.info("Resource unit created: tenant_id=%s unit_id=%s kind=%s", tenant_id, unit.id, unit.kind)
    return unit


def list_resource_units(
    db: Session, *, tenant_id: int, principal_id: int, kind: str | ResourceKind | None = None
) -> list[ResourceUnit]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RESERVATIONS
    )
    query = db.query(ResourceUnit).filter(ResourceUnit.tenant_id == tenant_id)
    if kind is not None:
        query = query.filter(ResourceUnit.kind == (kind.value if isinstance(kind, ResourceKind) else str(kind).lower()))
    return query.order_by(ResourceUnit.label.asc(), ResourceUnit.id.asc()).all()
