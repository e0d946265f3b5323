from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fedha.core.database import transaction
from fedha.core.errors import ConcurrencyConflict, InsufficientStock, ValidationError
from fedha.core.permissions import Action
from fedha.core.timeutils import utcnow
from fedha.models.catalog import CatalogItem
from fedha.models.sale import Sale, SaleLine
from fedha.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)

RECEIPT_PREFIX = "RCPT"
ALLOWED_PAYMENT_METHODS = {"cash", "mpesa", "card", "bank"}


@dataclass(frozen=True)
class SaleLineRequest:
    catalog_item_id: int
    quantity: int
    unit_price_cents: int


def _requested_quantities(lines: Sequence[SaleLineRequest]) -> dict[int, int]:
    """Validate the lines and sum quantities per catalog item."""
    if not lines:
        raise ValidationError("A sale needs at least one line")

    requested: dict[int, int] = {}
    for line in lines:
        if line.quantity is None or int(line.quantity) <= 0:
            raise ValidationError("Line quantity must be greater than zero")
        if line.unit_price_cents is None or int(line.unit_price_cents) < 0:
            raise ValidationError("Unit price cannot be negative")
        item_id = int(line.catalog_item_id)
        requested[item_id] = requested.get(item_id, 0) + int(line.quantity)
    return requested


def _normalize_payment_method(method: str | None) -> str:
    normalized = (method or "cash").strip().lower()
    if normalized not in ALLOWED_PAYMENT_METHODS:
        raise ValidationError("Unsupported payment method")
    return normalized


def _lock_catalog_items(db: Session, tenant_id: int, item_ids: Iterable[int]) -> dict[int, CatalogItem]:
    # Fixed lock order keeps two checkouts on the same items from deadlocking.
    rows = (
        db.query(CatalogItem)
        .filter(CatalogItem.tenant_id == tenant_id, CatalogItem.id.in_(sorted(item_ids)))
        .order_by(CatalogItem.id.asc())
        .with_for_update()
        .all()
    )
    return {row.id: row for row in rows}


def next_receipt_number(db: Session, tenant_id: int, now: datetime) -> str:
    day_prefix = f"{RECEIPT_PREFIX}-{now:%Y%m%d}-"
    issued_today = (
        db.query(func.count(Sale.id))
        .filter(Sale.tenant_id == tenant_id, Sale.receipt_number.like(f"{day_prefix}%"))
        .scalar()
        or 0
    )
    return f"{day_prefix}{issued_today + 1:04d}"


def _decrement_stock(db: Session, tenant_id: int, item_id: int, quantity: int) -> None:
    result = db.execute(
        update(CatalogItem)
        .where(
            CatalogItem.id == item_id,
            CatalogItem.tenant_id == tenant_id,
            CatalogItem.stock_quantity >= quantity,
        )
        .values(stock_quantity=CatalogItem.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStock(item_id, requested=quantity)


def create_sale(
    db: Session,
    *,
    tenant_id: int,
    cashier_id: int,
    lines: Sequence[SaleLineRequest],
    customer_name: str | None = None,
    customer_phone: str | None = None,
    payment_method: str | None = "cash",
) -> Sale:
    """Record a point-of-sale checkout and decrement stock atomically.

    Either the sale, all of its lines and every stock decrement are
    committed together, or nothing is.
    """
    try:
        with transaction(db):
            AuthorizationService.ensure_authorized(
                db, principal_id=cashier_id, tenant_id=tenant_id, action=Action.CREATE_SALE
            )
            requested = _requested_quantities(lines)
            method = _normalize_payment_method(payment_method)

            items = _lock_catalog_items(db, tenant_id, requested.keys())
            for item_id, quantity in requested.items():
                item = items.get(item_id)
                if item is None or not item.is_active:
                    raise ValidationError(f"Unknown catalog item {item_id}")
                if int(item.stock_quantity or 0) < quantity:
                    raise InsufficientStock(item_id, requested=quantity, available=int(item.stock_quantity or 0))

            now = utcnow()
            sale = Sale(
                tenant_id=tenant_id,
                cashier_id=cashier_id,
                customer_name=(customer_name or "").strip() or None,
                customer_phone=(customer_phone or "").strip() or None,
                payment_method=method,
                total_cents=sum(int(line.quantity) * int(line.unit_price_cents) for line in lines),
                receipt_number=next_receipt_number(db, tenant_id, now),
                created_at=now,
            )
            db.add(sale)
            db.flush()

            for line in lines:
                quantity = int(line.quantity)
                unit_price_cents = int(line.unit_price_cents)
                db.add(
                    SaleLine(
                        sale_id=sale.id,
                        tenant_id=tenant_id,
                        catalog_item_id=int(line.catalog_item_id),
                        quantity=quantity,
                        unit_price_cents=unit_price_cents,
                        line_total_cents=quantity * unit_price_cents,
                    )
                )

            for item_id, quantity in requested.items():
                _decrement_stock(db, tenant_id, item_id, quantity)
            db.flush()
    except InsufficientStock as exc:
        logger.info(
            "Sale rejected (insufficient_stock): tenant_id=%s cashier_id=%s item_id=%s",
            tenant_id,
            cashier_id,
            exc.item_id,
        )
        raise
    except IntegrityError as exc:
        logger.warning("Sale rejected (integrity): tenant_id=%s cashier_id=%s", tenant_id, cashier_id)
        raise ConcurrencyConflict() from exc

    db.refresh(sale)
    logger.info(
        "Sale created: tenant_id=%s sale_id=%s receipt=%s total_cents=%s lines=%s",
        tenant_id,
        sale.id,
        sale.receipt_number,
        sale.total_cents,
        len(lines),
    )
    return sale


def create_catalog_item(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    name: str,
    sale_price_cents: int,
    stock_quantity: int = 0,
    cost_price_cents: int | None = None,
    sku: str | None = None,
    unit: str = "pcs",
    min_stock_level: int = 0,
) -> CatalogItem:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_CATALOG
        )
        if not (name or "").strip():
            raise ValidationError("Name is required")
        if sale_price_cents < 0 or (cost_price_cents is not None and cost_price_cents < 0):
            raise ValidationError("Prices cannot be negative")
        if stock_quantity < 0 or min_stock_level < 0:
            raise ValidationError("Stock cannot be negative")

        item = CatalogItem(
            tenant_id=tenant_id,
            name=name.strip(),
            sku=(sku or "").strip() or None,
            unit=unit or "pcs",
            cost_price_cents=cost_price_cents,
            sale_price_cents=sale_price_cents,
            stock_quantity=stock_quantity,
            min_stock_level=min_stock_level,
            is_active=True,
        )
        db.add(item)
        db.flush()

    db.refresh(item)
    return item


def restock_catalog_item(
    db: Session,
    *,
    principal_id: int,
    tenant_id: int,
    item_id: int,
    quantity: int,
) -> CatalogItem:
    with transaction(db):
        AuthorizationService.ensure_authorized(
            db, principal_id=principal_id, tenant_id=tenant_id, action=Action.MANAGE_CATALOG
        )
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        item = (
            db.query(CatalogItem)
            .filter(CatalogItem.id == item_id, CatalogItem.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
        if item is None:
            raise ValidationError(f"Unknown catalog item {item_id}")
        item.stock_quantity = int(item.stock_quantity or 0) + quantity

    db.refresh(item)
    return item


def list_catalog_items(db: Session, *, principal_id: int, tenant_id: int) -> list[CatalogItem]:
    AuthorizationService.ensure_authorized(
        db, principal_id=principal_id, tenant_id=tenant_id, action=Action.READ_CATALOG
    )
    return (
        db.query(CatalogItem)
        .filter(CatalogItem.tenant_id == tenant_id, CatalogItem.is_active.is_(True))
        .order_by(CatalogItem.name.asc())
        .all()
    )


def count_low_stock(db: Session, tenant_id: int) -> int:
    return (
        db.query(CatalogItem)
        .filter(
            CatalogItem.tenant_id == tenant_id,
            CatalogItem.is_active.is_(True),
            CatalogItem.stock_quantity < CatalogItem.min_stock_level,
        )
        .count()
    )
