from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.models.school import Student
from fedha.services.school import create_student, deactivate_student, list_students

router = APIRouter(prefix="/api/tenants/{tenant_id}/students", tags=["school"])


class StudentCreate(BaseModel):
    admission_number: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    class_level: str = Field(..., min_length=1)
    parent_name: str = Field(..., min_length=1)
    parent_phone: str = Field(..., min_length=1)
    parent_email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    fee_amount_cents: int = Field(..., ge=0)


def _student_to_dict(student: Student) -> dict:
    return {
        "id": student.id,
        "admission_number": student.admission_number,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "class_level": student.class_level,
        "parent_name": student.parent_name,
        "parent_phone": student.parent_phone,
        "fee_amount_cents": student.fee_amount_cents,
        "is_active": student.is_active,
    }


@router.post("", status_code=201)
def enroll(
    tenant_id: int,
    payload: StudentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    student = create_student(db, principal_id=principal.id, tenant_id=tenant_id, **payload.model_dump())
    return _student_to_dict(student)


@router.get("")
def students(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [_student_to_dict(s) for s in list_students(db, principal_id=principal.id, tenant_id=tenant_id)]


@router.post("/{student_id}/deactivate")
def withdraw(
    tenant_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    student = deactivate_student(db, principal_id=principal.id, tenant_id=tenant_id, student_id=student_id)
    return _student_to_dict(student)
