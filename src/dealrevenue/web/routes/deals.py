"""Deal routes (revenue-relevant fields only)."""

from fastapi import APIRouter, Depends, Query

from dealrevenue.db import Deal
from dealrevenue.revenue.service import RevenueService
from dealrevenue.web.deps import get_revenue_service
from dealrevenue.web.schemas import DealCreate, DealUpdate

router = APIRouter(prefix="/api/deals", tags=["deals"])


def deal_to_dict(deal: Deal) -> dict:
    """Serialize a deal for JSON responses."""
    return {
        "id": deal.id,
        "title": deal.title,
        "status": deal.status,
        "audit_fee": float(deal.audit_fee),
        "retainer_monthly": float(deal.retainer_monthly),
        "custom_dev_fee": float(deal.custom_dev_fee),
        "revenue_start_date": (
            deal.revenue_start_date.isoformat() if deal.revenue_start_date else None
        ),
        "revenue_end_date": deal.revenue_end_date.isoformat() if deal.revenue_end_date else None,
        "currency": deal.currency,
        "is_ongoing": deal.is_ongoing,
        "created_at": deal.created_at,
        "updated_at": deal.updated_at,
    }


@router.post("", status_code=201)
async def create_deal(
    payload: DealCreate,
    service: RevenueService = Depends(get_revenue_service),
):
    """Create a deal."""
    fields = payload.model_dump(exclude={"title"})
    if fields["currency"] is None:
        fields.pop("currency")
    deal = service.create_deal(payload.title, **fields)
    return {"success": True, "data": deal_to_dict(deal)}


@router.get("")
async def list_deals(
    status: str | None = Query(None),
    service: RevenueService = Depends(get_revenue_service),
):
    """List deals, optionally filtered by status."""
    deals = service.list_deals(status=status)
    return {"success": True, "data": [deal_to_dict(d) for d in deals]}


@router.get("/{deal_id}")
async def get_deal(
    deal_id: str,
    service: RevenueService = Depends(get_revenue_service),
):
    """Get a single deal."""
    return {"success": True, "data": deal_to_dict(service.get_deal(deal_id))}


@router.patch("/{deal_id}")
async def update_deal(
    deal_id: str,
    payload: DealUpdate,
    service: RevenueService = Depends(get_revenue_service),
):
    """Update deal fields. Stored amendments are kept even if the window shrinks."""
    deal = service.update_deal(deal_id, **payload.model_dump(exclude_unset=True))
    return {"success": True, "data": deal_to_dict(deal)}


@router.delete("/{deal_id}")
async def delete_deal(
    deal_id: str,
    service: RevenueService = Depends(get_revenue_service),
):
    """Delete a deal together with its revenue amendments."""
    service.delete_deal(deal_id)
    return {"success": True, "data": {"deleted": True}}
