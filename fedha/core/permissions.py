from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    CASHIER = "cashier"
    ACCOUNTANT = "accountant"
    TEACHER = "teacher"
    FRONT_DESK = "front_desk"
    HOUSEKEEPER = "housekeeper"


class Action(str, Enum):
    MANAGE_STAFF = "manage_staff"
    VIEW_STAFF = "view_staff"
    EDIT_SETTINGS = "edit_settings"
    MANAGE_CATALOG = "manage_catalog"
    READ_CATALOG = "read_catalog"
    CREATE_SALE = "create_sale"
    MARK_ATTENDANCE = "mark_attendance"
    READ_STUDENTS = "read_students"
    RECORD_FEE_PAYMENT = "record_fee_payment"
    RECORD_RENT_PAYMENT = "record_rent_payment"
    READ_FINANCIAL_REPORTS = "read_financial_reports"
    MANAGE_RESERVATIONS = "manage_reservations"
    MANAGE_RESOURCE_STATUS = "manage_resource_status"
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_RECORDS = "manage_records"


_MEMBER_BASELINE = frozenset({Action.VIEW_DASHBOARD, Action.VIEW_STAFF})
_HOSPITALITY = frozenset({Action.MANAGE_RESERVATIONS, Action.MANAGE_RESOURCE_STATUS})

ROLE_PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.OWNER: frozenset(Action),
    Role.MANAGER: frozenset(Action),
    Role.CASHIER: _MEMBER_BASELINE | {Action.CREATE_SALE, Action.READ_CATALOG},
    Role.TEACHER: _MEMBER_BASELINE
    | {Action.MARK_ATTENDANCE, Action.RECORD_FEE_PAYMENT, Action.READ_STUDENTS},
    Role.ACCOUNTANT: _MEMBER_BASELINE
    | {Action.READ_FINANCIAL_REPORTS, Action.RECORD_RENT_PAYMENT, Action.RECORD_FEE_PAYMENT},
    Role.FRONT_DESK: _MEMBER_BASELINE | _HOSPITALITY,
    Role.HOUSEKEEPER: _MEMBER_BASELINE | _HOSPITALITY,
}

# Roles that staff invitations may grant; ownership comes only from Tenant.owner_id.
INVITABLE_ROLES = frozenset(role for role in Role if role is not Role.OWNER)


def role_allows(role: Role, action: Action) -> bool:
    return action in ROLE_PERMISSIONS[role]


def parse_role(value: str | Role | None) -> Role | None:
    if isinstance(value, Role):
        return value
    normalized = (value or "").strip().lower().replace("-", "_")
    try:
        return Role(normalized)
    except ValueError:
        return None
