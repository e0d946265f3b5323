"""Create the fedha schema.

Principals and tenants with their memberships and trial subscriptions,
the retail catalog with sales and sale lines, rental lessees, school
students, rent and fee payments, and hospitality resource units with
their reservations.

Revision ID: 0001_create_schema
Revises:
Create Date: 2025-01-06
"""
from __future__ import annotations

from alembic import op

from fedha.core.database import Base
import fedha.models  # noqa: F401

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None

# Creation order; parents before the rows that reference them.
SCHEMA_TABLES = (
    "principals",
    "tenants",
    "memberships",
    "subscriptions",
    "catalog_items",
    "sales",
    "sale_lines",
    "lessees",
    "students",
    "rent_payments",
    "fee_payments",
    "resource_units",
    "reservations",
)


def _tables():
    return [Base.metadata.tables[name] for name in SCHEMA_TABLES]


def upgrade() -> None:
    bind = op.get_bind()
    for table in _tables():
        table.create(bind=bind, checkfirst=True)


def downgrade() -> None:
    bind = op.get_bind()
    for table in reversed(_tables()):
        table.drop(bind=bind, checkfirst=True)
