from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import NotFound, ValidationError
from fedha.core.permissions import Action
from fedha.models.rentals import Lessee
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)


def create_lessee(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    name: str,
    phone: str,
    unit_number: str,
    rent_amount_cents: int,
    lease_start: date,
    email: str | None = None,
    deposit_amount_cents: int | None = None,
    lease_end: date | None = None,
) -> Lessee:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RECORDS
        )
        if not (name or "").strip() or not (phone or "").strip():
            raise ValidationError("Name and phone are required")
        if not (unit_number or "").strip():
            raise ValidationError("Unit number is required")
        if rent_amount_cents is None or rent_amount_cents <= 0:
            raise ValidationError("Rent amount must be greater than zero")
        if deposit_amount_cents is not None and deposit_amount_cents < 0:
            raise ValidationError("Deposit cannot be negative")
        if lease_start is None:
            raise ValidationError("Lease start is required")
        if lease_end is not None and lease_end <= lease_start:
            raise ValidationError("Lease end must be after lease start")

        lessee = Lessee(
            tenant_id=tenant_id,
            name=name.strip(),
            phone=phone.strip(),
            email=(email or "").strip() or None,
            unit_number=unit_number.strip(),
            rent_amount_cents=rent_amount_cents,
            deposit_amount_cents=deposit_amount_cents,
            lease_start=lease_start,
            lease_end=lease_end,
            is_active=True,
        )
        db.add(lessee)
        db.flush()

    db.refresh(lessee)
    logger.info("Lessee created: tenant_id=%s lessee_id=%s unit=%s", tenant_id, lessee.id, lessee.unit_number)
    return lessee


def deactivate_lessee(db: Session, *, principal_id: int, tenant_id: int, lessee_id: int) -> Lessee:
    """End a tenancy. Payment history stays; the lessee stops counting as a customer."""
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RECORDS
        )
        lessee = (
            db.query(Lessee)
            .filter(Lessee.id == lessee_id, Lessee.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
        if lessee is None:
            raise NotFound("Lessee not found")
        lessee.is_active = False

    db.refresh(lessee)
    logger.info("Lessee deactivated: tenant_id=%s lessee_id=%s", tenant_id, lessee.id)
    return lessee


def list_lessees(db: Session, *, principal_id: int, tenant_id: int, include_inactive: bool = False) -> list[Lessee]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.RECORD_RENT_PAYMENT
    )
    query = db.query(Lessee).filter(Lessee.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(Lessee.is_active.is_(True))
    return query.order_by(Lessee.unit_number.asc(), Lessee.id.asc()).all()
