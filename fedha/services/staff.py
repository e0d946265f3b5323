from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import AlreadyMember, MembershipNotFound, PrincipalNotFound, ValidationError
from fedha.core.permissions import INVITABLE_ROLES, Action, Role, parse_role
from fedha.core.timeutils import utcnow
from fedha.models.membership import Membership
from fedha.models.principal import Principal
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _parse_invitable_role(role: str | Role) -> Role:
    parsed = parse_role(role)
    if parsed is None or parsed not in INVITABLE_ROLES:
        raise ValidationError("Role cannot be granted by invitation")
    return parsed


def invite_staff(
    db: Session,
    *,
    inviter_id: int,
    tenant_id: int,
    invitee_email: str,
    role: str | Role,
) -> Membership:
    """Grant an existing principal a role in the tenant.

    No membership -> active row; inactive row -> reactivated with the new
    role; active row -> AlreadyMember and nothing changes. Accounts are never
    created here.
    """
    try:
        with transaction(db):
            AuthorizationService.ensure_authorized(
                db, principal_id=inviter_id, tenant_id=tenant_id, action=Action.MANAGE_STAFF
            )
            parsed_role = _parse_invitable_role(role)

            invitee = db.query(Principal).filter(Principal.email == normalize_email(invitee_email)).first()
            if invitee is None:
                raise PrincipalNotFound()
            if AuthorizationService.tenant_owner_id(db, tenant_id) == invitee.id:
                raise AlreadyMember()

            membership = (
                db.query(Membership)
                .filter(Membership.tenant_id == tenant_id, Membership.principal_id == invitee.id)
                .with_for_update()
                .first()
            )
            if membership is not None and membership.is_active:
                raise AlreadyMember()

            now = utcnow()
            if membership is None:
                membership = Membership(
                    tenant_id=tenant_id,
                    principal_id=invitee.id,
                    role=parsed_role.value,
                    is_active=True,
                    invited_by_id=inviter_id,
                    invited_at=now,
                )
                db.add(membership)
            else:
                membership.role = parsed_role.value
                membership.is_active = True
                membership.invited_by_id = inviter_id
                membership.invited_at = now
            db.flush()
    except IntegrityError as exc:
        # Lost a race against an identical invitation.
        raise AlreadyMember() from exc

    db.refresh(membership)
    logger.info(
        "Staff invited: tenant_id=%s principal_id=%s role=%s inviter_id=%s",
        tenant_id,
        membership.principal_id,
        membership.role,
        inviter_id,
    )
    return membership


def remove_staff(db: Session, *, actor_id: int, tenant_id: int, member_principal_id: int) -> Membership:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=actor_id, tenant_id=tenant_id, action=Action.MANAGE_STAFF
        )
        if int(member_principal_id) == int(actor_id):
            raise ValidationError("You cannot remove yourself")
        if AuthorizationService.tenant_owner_id(db, tenant_id) == int(member_principal_id):
            raise ValidationError("The tenant owner cannot be removed")

        membership = (
            db.query(Membership)
            .filter(
                Membership.tenant_id == tenant_id,
                Membership.principal_id == member_principal_id,
                Membership.is_active.is_(True),
            )
            .with_for_update()
            .first()
        )
        if membership is None:
            raise MembershipNotFound()
        membership.is_active = False

    db.refresh(membership)
    logger.info(
        "Staff removed: tenant_id=%s principal_id=%s actor_id=%s",
        tenant_id,
        member_principal_id,
        actor_id,
    )
    return membership


def list_staff(db: Session, *, principal_id: int, tenant_id: int) -> list[tuple[Membership, Principal]]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.VIEW_STAFF
    )
    return (
        db.query(Membership, Principal)
        .join(Principal, Principal.id == Membership.principal_id)
        .filter(Membership.tenant_id == tenant_id)
        .order_by(Membership.id.asc())
        .all()
    )
