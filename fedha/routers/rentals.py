from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.models.rentals import Lessee
from fedha.services.rentals import create_lessee, deactivate_lessee, list_lessees

router = APIRouter(prefix="/api/tenants/{tenant_id}/lessees", tags=["rentals"])


class LesseeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    unit_number: str = Field(..., min_length=1)
    rent_amount_cents: int = Field(..., gt=0)
    deposit_amount_cents: Optional[int] = Field(default=None, ge=0)
    lease_start: date
    lease_end: Optional[date] = None


def _lessee_to_dict(lessee: Lessee) -> dict:
    return {
        "id": lessee.id,
        "tenant_id": lessee.tenant_id,
        "name": lessee.name,
        "phone": lessee.phone,
        "email": lessee.email,
        "unit_number": lessee.unit_number,
        "rent_amount_cents": lessee.rent_amount_cents,
        "deposit_amount_cents": lessee.deposit_amount_cents,
        "lease_start": lessee.lease_start.isoformat(),
        "lease_end": lessee.lease_end.isoformat() if lessee.lease_end else None,
        "is_active": lessee.is_active,
    }


@router.post("", status_code=201)
def add_lessee(
    tenant_id: int,
    payload: LesseeCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    lessee = create_lessee(db, principal_id=principal.id, tenant_id=tenant_id, **payload.model_dump())
    return _lessee_to_dict(lessee)


@router.get("")
def lessees(
    tenant_id: int,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [
        _lessee_to_dict(lessee)
        for lessee in list_lessees(
            db, principal_id=principal.id, tenant_id=tenant_id, include_inactive=include_inactive
        )
    ]


@router.post("/{lessee_id}/deactivate")
def end_tenancy(
    tenant_id: int,
    lessee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    lessee = deactivate_lessee(db, principal_id=principal.id, tenant_id=tenant_id, lessee_id=lessee_id)
    return _lessee_to_dict(lessee)
