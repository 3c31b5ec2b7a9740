"""Revenue schedule and amendment routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dealrevenue.db import RevenueItem
from dealrevenue.revenue import actions
from dealrevenue.revenue.service import RevenueService
from dealrevenue.web.app import error_response
from dealrevenue.web.deps import get_revenue_service
from dealrevenue.web.schemas import RevenueItemDelete, RevenueItemUpsert

router = APIRouter(prefix="/api/deals/{deal_id}/revenue", tags=["revenue"])


def item_to_dict(item: RevenueItem) -> dict:
    """Serialize a stored amendment."""
    return {
        "id": item.id,
        "deal_id": item.deal_id,
        "month": item.month,
        "item_type": item.item_type,
        "amount": float(item.amount),
        "notes": item.notes,
        "created_by": item.created_by,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def _respond(result: actions.ActionResponse) -> dict | JSONResponse:
    if not result.success:
        return error_response(result.error_kind or "error", result.error or "", result.field)
    return result.to_dict()


@router.get("")
async def get_schedule(
    deal_id: str,
    service: RevenueService = Depends(get_revenue_service),
):
    """Monthly revenue schedule with amendments applied."""
    return _respond(actions.get_deal_revenue_schedule(service, deal_id))


@router.get("/items")
async def list_items(
    deal_id: str,
    service: RevenueService = Depends(get_revenue_service),
):
    """Raw stored amendments, including any outside the current window."""
    items = service.list_revenue_items(deal_id)
    return {"success": True, "data": [item_to_dict(i) for i in items]}


@router.put("/items")
async def upsert_item(
    deal_id: str,
    payload: RevenueItemUpsert,
    service: RevenueService = Depends(get_revenue_service),
):
    """Create or replace the amendment for one month and line item."""
    result = actions.upsert_revenue_item(
        service,
        deal_id,
        payload.month,
        payload.item_type,
        payload.amount,
        notes=payload.notes,
        created_by=payload.created_by,
    )
    return _respond(result)


@router.delete("/items")
async def delete_item(
    deal_id: str,
    payload: RevenueItemDelete,
    service: RevenueService = Depends(get_revenue_service),
):
    """Reset one cell to its default value."""
    result = actions.delete_revenue_item(service, deal_id, payload.month, payload.item_type)
    if result.success:
        return {"success": True, "data": {"deleted": True}}
    return _respond(result)
