from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.catalog import CatalogItem
from fedha.models.principal import Principal
from fedha.models.sale import Sale
from fedha.services.sales import (
    SaleLineRequest,
    create_catalog_item,
    create_sale,
    list_catalog_items,
    restock_catalog_item,
)

router = APIRouter(prefix="/api/tenants/{tenant_id}", tags=["sales"])


class SaleLineCreate(BaseModel):
    catalog_item_id: int
    quantity: int = Field(..., gt=0)
    unit_price_cents: int = Field(..., ge=0)


class SaleCreate(BaseModel):
    lines: List[SaleLineCreate] = Field(..., min_length=1)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: str = "cash"


class CatalogItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: Optional[str] = None
    unit: str = "pcs"
    cost_price_cents: Optional[int] = Field(None, ge=0)
    sale_price_cents: int = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)


class RestockPayload(BaseModel):
    quantity: int = Field(..., gt=0)


def _sale_to_dict(sale: Sale) -> dict:
    return {
        "id": sale.id,
        "tenant_id": sale.tenant_id,
        "receipt_number": sale.receipt_number,
        "cashier_id": sale.cashier_id,
        "customer_name": sale.customer_name,
        "customer_phone": sale.customer_phone,
        "payment_method": sale.payment_method,
        "total_cents": sale.total_cents,
        "created_at": sale.created_at.isoformat() if sale.created_at else None,
        "lines": [
            {
                "catalog_item_id": line.catalog_item_id,
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price_cents,
                "line_total_cents": line.line_total_cents,
            }
            for line in sale.lines
        ],
    }


def _item_to_dict(item: CatalogItem) -> dict:
    return {
        "id": item.id,
        "tenant_id": item.tenant_id,
        "name": item.name,
        "sku": item.sku,
        "unit": item.unit,
        "cost_price_cents": item.cost_price_cents,
        "sale_price_cents": item.sale_price_cents,
        "stock_quantity": item.stock_quantity,
        "min_stock_level": item.min_stock_level,
        "low_stock": item.stock_quantity < item.min_stock_level,
    }


@router.post("/sales", status_code=201)
def checkout(
    tenant_id: int,
    payload: SaleCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    sale = create_sale(
        db,
        tenant_id=tenant_id,
        cashier_id=principal.id,
        lines=[
            SaleLineRequest(
                catalog_item_id=line.catalog_item_id,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
            )
            for line in payload.lines
        ],
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        payment_method=payload.payment_method,
    )
    return _sale_to_dict(sale)


@router.get("/catalog")
def catalog(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [_item_to_dict(item) for item in list_catalog_items(db, principal_id=principal.id, tenant_id=tenant_id)]


@router.post("/catalog", status_code=201)
def add_catalog_item(
    tenant_id: int,
    payload: CatalogItemCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    item = create_catalog_item(
        db,
        principal_id=principal.id,
        tenant_id=tenant_id,
        name=payload.name,
        sku=payload.sku,
        unit=payload.unit,
        cost_price_cents=payload.cost_price_cents,
        sale_price_cents=payload.sale_price_cents,
        stock_quantity=payload.stock_quantity,
        min_stock_level=payload.min_stock_level,
    )
    return _item_to_dict(item)


@router.post("/catalog/{item_id}/restock")
def restock(
    tenant_id: int,
    item_id: int,
    payload: RestockPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    item = restock_catalog_item(
        db,
        principal_id=principal.id,
        tenant_id=tenant_id,
        item_id=item_id,
        quantity=payload.quantity,
    )
    return _item_to_dict(item)
