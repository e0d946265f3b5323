from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from fedha.core.errors import NotAuthorized
from fedha.core.permissions import Action, Role, role_allows
from fedha.models.tenant import Tenant
from fedha.services.membership import resolve_membership

logger = logging.getLogger(__name__)

# Unknown tenants and non-members share one reason.
REASON_NOT_MEMBER = "not_member"
REASON_ROLE_DENIED = "role_denied"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None
    role: Role | None = None


class AuthorizationService:
    """Centralize tenant-scope and role checks for every service operation."""

    @staticmethod
    def tenant_owner_id(db: Session, tenant_id: int) -> int | None:
        owner_id = db.query(Tenant.owner_id).filter(Tenant.id == tenant_id).scalar()
        return int(owner_id) if owner_id is not None else None

    @staticmethod
    def log_access_denied(*, reason: str, principal_id: int, tenant_id: int, action: Action) -> None:
        logger.warning(
            "Access denied (%s): principal_id=%s tenant_id=%s action=%s",
            reason,
            principal_id,
            tenant_id,
            action.value,
        )

    @classmethod
    def authorize(cls, db: Session, *, principal_id: int, tenant_id: int, action: Action) -> Decision:
        owner_id = cls.tenant_owner_id(db, tenant_id)
        if owner_id is None:
            return Decision(allowed=False, reason=REASON_NOT_MEMBER)
        if owner_id == int(principal_id):
            return Decision(allowed=True, role=Role.OWNER)

        membership = resolve_membership(db, principal_id, tenant_id)
        if membership is None:
            return Decision(allowed=False, reason=REASON_NOT_MEMBER)
        if not role_allows(membership.role, action):
            return Decision(allowed=False, reason=REASON_ROLE_DENIED, role=membership.role)
        return Decision(allowed=True, role=membership.role)

    @classmethod
    def ensure_authorized(cls, db: Session, *, principal_id: int, tenant_id: int, action: Action) -> Decision:
        decision = cls.authorize(db, principal_id=principal_id, tenant_id=tenant_id, action=action)
        if not decision.allowed:
            cls.log_access_denied(
                reason=decision.reason or REASON_NOT_MEMBER,
                principal_id=principal_id,
                tenant_id=tenant_id,
                action=action,
            )
            raise NotAuthorized()
        return decision


authorize = AuthorizationService.authorize
ensure_authorized = AuthorizationService.ensure_authorized
