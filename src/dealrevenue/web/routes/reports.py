"""Portfolio report routes."""

from fastapi import APIRouter, Depends, Query, Request

from dealrevenue.config import Config
from dealrevenue.db import Database
from dealrevenue.revenue.reports import monthly_revenue
from dealrevenue.web.deps import get_config, get_db

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/monthly-revenue")
async def monthly_revenue_report(
    request: Request,
    months: int | None = Query(None, ge=1, le=120),
    config: Config = Depends(get_config),
    db: Database = Depends(get_db),
):
    """Revenue recognized per month across won deals."""
    data = monthly_revenue(
        db,
        months=months or config.revenue.report_months,
        today=request.app.state.clock(),
        statuses=config.revenue.report_statuses,
    )
    return {"success": True, "data": [entry.to_dict() for entry in data]}
