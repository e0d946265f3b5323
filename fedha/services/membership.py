from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from fedha.core.permissions import Role, parse_role
from fedha.models.membership import Membership

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedMembership:
    tenant_id: int
    principal_id: int
    role: Role
    active: bool = True


def resolve_membership(db: Session, principal_id: int, tenant_id: int) -> ResolvedMembership | None:
    """Return the active membership of a principal in a tenant, or None.

    Plain read of the memberships table. Ownership is not consulted here and
    the policy layer is never called back, so evaluating a change to the
    memberships table cannot recurse into itself.
    """
    row = (
        db.query(Membership)
        .filter(
            Membership.tenant_id == tenant_id,
            Membership.principal_id == principal_id,
            Membership.is_active.is_(True),
        )
        .first()
    )
    if row is None:
        return None

    role = parse_role(row.role)
    if role is None:
        logger.warning(
            "Ignoring membership with unknown role: membership_id=%s role=%s",
            row.id,
            row.role,
        )
        return None

    return ResolvedMembership(tenant_id=row.tenant_id, principal_id=row.principal_id, role=role)
