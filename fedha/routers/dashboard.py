from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.services.dashboard import get_stats

router = APIRouter(prefix="/api/tenants/{tenant_id}/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(
    tenant_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    result = get_stats(db, principal_id=principal.id, tenant_id=tenant_id)
    return {
        "category": result.category,
        "customer_count": result.customer_count,
        "total_revenue_cents": result.total_revenue_cents,
        "low_stock_count": result.low_stock_count,
        "revenue_series": [
            {
                "amount_cents": point.amount_cents,
                "occurred_at": point.occurred_at.isoformat() if point.occurred_at else None,
                "source": point.source,
            }
            for point in result.revenue_series
        ],
    }
