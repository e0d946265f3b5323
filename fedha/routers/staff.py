from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.membership import Membership
from fedha.models.principal import Principal
from fedha.services.staff import invite_staff, list_staff, remove_staff

router = APIRouter(prefix="/api/tenants/{tenant_id}/staff", tags=["staff"])


class InvitationCreate(BaseModel):
    email: EmailStr
    role: str


def _membership_to_dict(membership: Membership, principal: Principal | None = None) -> dict:
    data = {
        "id": membership.id,
        "tenant_id": membership.tenant_id,
        "principal_id": membership.principal_id,
        "role": membership.role,
        "is_active": membership.is_active,
        "invited_by_id": membership.invited_by_id,
        "invited_at": membership.invited_at.isoformat() if membership.invited_at else None,
    }
    if principal is not None:
        data["email"] = principal.email
        data["full_name"] = principal.full_name
    return data


@router.post("/invitations", status_code=201)
def invite(
    tenant_id: int,
    payload: InvitationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    membership = invite_staff(
        db,
        inviter_id=principal.id,
        tenant_id=tenant_id,
        invitee_email=payload.email,
        role=payload.role,
    )
    return _membership_to_dict(membership)


@router.get("")
def list_members(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = list_staff(db, principal_id=principal.id, tenant_id=tenant_id)
    return [_membership_to_dict(membership, member) for membership, member in rows]


@router.delete("/{member_principal_id}")
def remove(
    tenant_id: int,
    member_principal_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    membership = remove_staff(
        db,
        actor_id=principal.id,
        tenant_id=tenant_id,
        member_principal_id=member_principal_id,
    )
    return _membership_to_dict(membership)
