from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.models.tenant import Tenant
from fedha.services.tenants import create_tenant, get_tenant, list_my_tenants, update_tenant_settings

router = APIRouter(prefix="/api/tenants", tags=["tenants"])


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str
    description: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    logo_url: Optional[str] = None


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    logo_url: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


def _tenant_to_dict(tenant: Tenant, principal_id: int) -> dict:
    return {
        "id": tenant.id,
        "name": tenant.name,
        "category": tenant.category,
        "description": tenant.description,
        "phone": tenant.phone,
        "location": tenant.location,
        "logo_url": tenant.logo_url,
        "settings": tenant.settings or {},
        "is_owner": tenant.owner_id == principal_id,
        "created_at": tenant.created_at.isoformat() if tenant.created_at else None,
    }


@router.post("", status_code=201)
def create(
    payload: TenantCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    tenant = create_tenant(
        db,
        owner_id=principal.id,
        name=payload.name,
        category=payload.category,
        description=payload.description,
        phone=payload.phone,
        location=payload.location,
        logo_url=payload.logo_url,
    )
    return _tenant_to_dict(tenant, principal.id)


@router.get("")
def list_tenants(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [_tenant_to_dict(tenant, principal.id) for tenant in list_my_tenants(db, principal_id=principal.id)]


@router.get("/{tenant_id}")
def read(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return _tenant_to_dict(get_tenant(db, principal_id=principal.id, tenant_id=tenant_id), principal.id)


@router.patch("/{tenant_id}")
def update(
    tenant_id: int,
    payload: TenantUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    changes = payload.model_dump(exclude_unset=True)
    settings = changes.pop("settings", None)
    tenant = update_tenant_settings(
        db,
        principal_id=principal.id,
        tenant_id=tenant_id,
        changes=changes,
        settings=settings,
    )
    return _tenant_to_dict(tenant, principal.id)
