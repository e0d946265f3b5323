from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from fedha.core.config import TRIAL_PERIOD_DAYS
from fedha.core.database import transaction
from fedha.core.errors import NotAuthorized, ValidationError
from fedha.core.permissions import Action, Role
from fedha.core.timeutils import utcnow
from fedha.models.membership import Membership
from fedha.models.principal import Principal
from fedha.models.subscription import Subscription, SubscriptionStatus
from fedha.models.tenant import Tenant, TenantCategory
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "phone", "location", "logo_url")


def _parse_category(value: str | TenantCategory) -> TenantCategory:
    if isinstance(value, TenantCategory):
        return value
    normalized = (value or "").strip().lower().replace("-", "_")
    try:
        return TenantCategory(normalized)
    except ValueError as exc:
        raise ValidationError("Unknown business category") from exc


def create_tenant(
    db: Session,
    *,
    owner_id: int,
    name: str,
    category: str | TenantCategory,
    description: str | None = None,
    phone: str | None = None,
    location: str | None = None,
    logo_url: str | None = None,
) -> Tenant:
    """Create a tenant with its owner membership and a trial subscription.

    The owner row is written on the strength of ``owner_id`` alone: no
    membership exists yet, so the policy layer is not consulted here.
    """
    if not (name or "").strip():
        raise ValidationError("Business name is required")
    parsed_category = _parse_category(category)

    with transaction(db):
        if db.query(Principal.id).filter(Principal.id == owner_id).first() is None:
            raise ValidationError("Unknown owner")

        now = utcnow()
        tenant = Tenant(
            owner_id=owner_id,
            category=parsed_category.value,
            name=name.strip(),
            description=description,
            phone=phone,
            location=location,
            logo_url=logo_url,
            settings={},
            created_at=now,
            updated_at=now,
        )
        db.add(tenant)
        db.flush()

        db.add(
            Membership(
                tenant_id=tenant.id,
                principal_id=owner_id,
                role=Role.OWNER.value,
                is_active=True,
                invited_by_id=None,
                invited_at=now,
            )
        )
        db.add(
            Subscription(
                tenant_id=tenant.id,
                status=SubscriptionStatus.TRIAL.value,
                trial_ends_at=now + timedelta(days=TRIAL_PERIOD_DAYS),
            )
        )
        db.flush()

    db.refresh(tenant)
    logger.info(
        "Tenant created: tenant_id=%s owner_id=%s category=%s",
        tenant.id,
        owner_id,
        tenant.category,
    )
    return tenant


def list_my_tenants(db: Session, *, principal_id: int) -> list[Tenant]:
    member_of = select(Membership.tenant_id).where(
        Membership.principal_id == principal_id, Membership.is_active.is_(True)
    )
    return (
        db.query(Tenant)
        .filter(or_(Tenant.owner_id == principal_id, Tenant.id.in_(member_of)))
        .order_by(Tenant.created_at.desc(), Tenant.id.desc())
        .all()
    )


def get_tenant(db: Session, *, principal_id: int, tenant_id: int) -> Tenant:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.VIEW_DASHBOARD
    )
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if tenant is None:
        raise NotAuthorized()
    return tenant


def update_tenant_settings(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    changes: dict[str, Any],
    settings: dict[str, Any] | None = None,
) -> Tenant:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.EDIT_SETTINGS
        )
        tenant = db.query(Tenant).filter(Tenant.id == tenant_id).with_for_update().first()
        if tenant is None:
            raise NotAuthorized()

        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                raise ValidationError(f"Field {key} cannot be changed")
            if key == "name" and not (value or "").strip():
                raise ValidationError("Business name is required")
            setattr(tenant, key, value.strip() if isinstance(value, str) else value)

        if settings is not None:
            merged = dict(tenant.settings or {})
            merged.update(settings)
            tenant.settings = merged

    db.refresh(tenant)
    return tenant
