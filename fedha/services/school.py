from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import DuplicateAdmissionNumber, NotFound, ValidationError
from fedha.core.permissions import Action
from fedha.models.school import Student
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)


def create_student(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    admission_number: str,
    first_name: str,
    last_name: str,
    class_level: str,
    parent_name: str,
    parent_phone: str,
    fee_amount_cents: int,
    date_of_birth: date | None = None,
    parent_email: str | None = None,
) -> Student:
    required = {
        "Admission number": admission_number,
        "First name": first_name,
        "Last name": last_name,
        "Class": class_level,
        "Parent name": parent_name,
        "Parent phone": parent_phone,
    }
    try:
        with transaction(db):
            AuthorizationService.ensure_authorized(
                db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RECORDS
            )
            for label, value in required.items():
                if not (value or "").strip():
                    raise ValidationError(f"{label} is required")
            if fee_amount_cents is None or fee_amount_cents < 0:
                raise ValidationError("Fee amount cannot be negative")

            admission_number = admission_number.strip().upper()
            taken = (
                db.query(Student.id)
                .filter(Student.tenant_id == tenant_id, Student.admission_number == admission_number)
                .first()
            )
            if taken is not None:
                raise DuplicateAdmissionNumber()

            student = Student(
                tenant_id=tenant_id,
                admission_number=admission_number,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                date_of_birth=date_of_birth,
                class_level=class_level.strip(),
                parent_name=parent_name.strip(),
                parent_phone=parent_phone.strip(),
                parent_email=(parent_email or "").strip() or None,
                fee_amount_cents=fee_amount_cents,
                is_active=True,
            )
            db.add(student)
            db.flush()
    except IntegrityError as exc:
        raise DuplicateAdmissionNumber() from exc

    db.refresh(student)
    logger.info(
        "Student enrolled: tenant_id=%s student_id=%s admission_number=%s",
        tenant_id,
        student.id,
        student.admission_number,
    )
    return student


def deactivate_student(db: Session, *, principal_id: int, tenant_id: int, student_id: int) -> Student:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_RECORDS
        )
        student = (
            db.query(Student)
            .filter(Student.id == student_id, Student.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
        if student is None:
            raise NotFound("Student not found")
        student.is_active = False

    db.refresh(student)
    logger.info("Student deactivated: tenant_id=%s student_id=%s", tenant_id, student.id)
    return student


def list_students(db: Session, *, principal_id: int, tenant_id: int, include_inactive: bool = False) -> list[Student]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.READ_STUDENTS
    )
    query = db.query(Student).filter(Student.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(Student.is_active.is_(True))
    return query.order_by(Student.admission_number.asc()).all()
