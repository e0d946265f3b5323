from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import ValidationError
from fedha.core.permissions import Action
from fedha.core.timeutils import utcnow
from fedha.models.payments import FeePayment, PaymentStatus, RentPayment
from fedha.models.rentals import Lessee
from fedha.models.school import Student
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)


def _parse_status(value: str | PaymentStatus | None) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus((value or PaymentStatus.PAID.value).strip().lower())
    except ValueError as exc:
        raise ValidationError("Unknown payment status") from exc


def _check_amount(amount_cents: int) -> None:
    if amount_cents is None or int(amount_cents) <= 0:
        raise ValidationError("Amount must be greater than zero")


def record_rent_payment(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    lessee_id: int,
    amount_cents: int,
    period: str,
    due_date: date,
    status: str | PaymentStatus | None = PaymentStatus.PAID,
    reference: str | None = None,
    notes: str | None = None,
) -> RentPayment:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.RECORD_RENT_PAYMENT
        )
        _check_amount(amount_cents)
        parsed_status = _parse_status(status)
        if not (period or "").strip():
            raise ValidationError("Period is required")

        lessee = db.query(Lessee.id).filter(Lessee.id == lessee_id, Lessee.tenant_id == tenant_id).first()
        if lessee is None:
            raise ValidationError(f"Unknown lessee {lessee_id}")

        payment = RentPayment(
            tenant_id=tenant_id,
            lessee_id=lessee_id,
            amount_cents=int(amount_cents),
            period=period.strip(),
            due_date=due_date,
            paid_at=utcnow() if parsed_status is PaymentStatus.PAID else None,
            status=parsed_status.value,
            reference=reference,
            notes=notes,
        )
        db.add(payment)
        db.flush()

    db.refresh(payment)
    logger.info(
        "Rent payment recorded: tenant_id=%s lessee_id=%s payment_id=%s status=%s",
        tenant_id,
        lessee_id,
        payment.id,
        payment.status,
    )
    return payment


def record_fee_payment(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    student_id: int,
    amount_cents: int,
    term: str,
    due_date: date,
    status: str | PaymentStatus | None = PaymentStatus.PAID,
    reference: str | None = None,
    notes: str | None = None,
) -> FeePayment:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.RECORD_FEE_PAYMENT
        )
        _check_amount(amount_cents)
        parsed_status = _parse_status(status)
        if not (term or "").strip():
            raise ValidationError("Term is required")

        student = db.query(Student.id).filter(Student.id == student_id, Student.tenant_id == tenant_id).first()
        if student is None:
            raise ValidationError(f"Unknown student {student_id}")

        payment = FeePayment(
            tenant_id=tenant_id,
            student_id=student_id,
            amount_cents=int(amount_cents),
            term=term.strip(),
            due_date=due_date,
            paid_at=utcnow() if parsed_status is PaymentStatus.PAID else None,
            status=parsed_status.value,
            reference=reference,
            notes=notes,
        )
        db.add(payment)
        db.flush()

    db.refresh(payment)
    logger.info(
        "Fee payment recorded: tenant_id=%s student_id=%s payment_id=%s status=%s",
        tenant_id,
        student_id,
        payment.id,
        payment.status,
    )
    return payment
