from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.services.payments import record_fee_payment, record_rent_payment

router = APIRouter(prefix="/api/tenants/{tenant_id}", tags=["payments"])


class RentPaymentCreate(BaseModel):
    lessee_id: int
    amount_cents: int = Field(..., gt=0)
    period: str = Field(..., min_length=1)
    due_date: date
    status: str = "paid"
    reference: Optional[str] = None
    notes: Optional[str] = None


class FeePaymentCreate(BaseModel):
    student_id: int
    amount_cents: int = Field(..., gt=0)
    term: str = Field(..., min_length=1)
    due_date: date
    status: str = "paid"
    reference: Optional[str] = None
    notes: Optional[str] = None


def _payment_to_dict(payment) -> dict:
    return {
        "id": payment.id,
        "tenant_id": payment.tenant_id,
        "amount_cents": payment.amount_cents,
        "due_date": payment.due_date.isoformat(),
        "paid_at": payment.paid_at.isoformat() if payment.paid_at else None,
        "status": payment.status,
        "reference": payment.reference,
    }


@router.post("/rent-payments", status_code=201)
def rent_payment(
    tenant_id: int,
    payload: RentPaymentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    payment = record_rent_payment(db, principal_id=principal.id, tenant_id=tenant_id, **payload.model_dump())
    return {**_payment_to_dict(payment), "lessee_id": payment.lessee_id, "period": payment.period}


@router.post("/fee-payments", status_code=201)
def fee_payment(
    tenant_id: int,
    payload: FeePaymentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    payment = record_fee_payment(db, principal_id=principal.id, tenant_id=tenant_id, **payload.model_dump())
    return {**_payment_to_dict(payment), "student_id": payment.student_id, "term": payment.term}

