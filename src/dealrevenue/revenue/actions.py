"""Action-style entry points that never raise across the network boundary.

Each call returns an ``ActionResponse``: ``success`` plus either ``data`` or
an ``error`` message and ``error_kind`` (``validation``, ``not_found``,
``storage``). Retrying a failed call is left to the caller.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog

from ..errors import RevenueError
from .service import RevenueService

logger = structlog.get_logger(__name__)


@dataclass
class ActionResponse:
    """Structured success/failure result."""

    success: bool
    data: Any = None
    error: str | None = None
    error_kind: str | None = None
    field: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: RevenueError) -> "ActionResponse":
        return cls(
            success=False,
            error=exc.message,
            error_kind=exc.kind,
            field=getattr(exc, "field", None),
        )

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            result: dict[str, Any] = {"success": True}
            if self.data is not None:
                result["data"] = self.data
            return result
        result = {"success": False, "error": self.error, "kind": self.error_kind}
        if self.field:
            result["field"] = self.field
        return result


def get_deal_revenue_schedule(service: RevenueService, deal_id: str) -> ActionResponse:
    """Fetch a deal's schedule as a serialized dict."""
    try:
        schedule = service.get_deal_revenue_schedule(deal_id)
    except RevenueError as e:
        logger.warning("revenue.schedule_failed", deal_id=deal_id, kind=e.kind, error=e.message)
        return ActionResponse.fail(e)
    return ActionResponse.ok(schedule.to_dict())


def upsert_revenue_item(
    service: RevenueService,
    deal_id: str,
    month: str | date,
    item_type: str,
    amount: Any,
    notes: str | None = None,
    created_by: str | None = None,
) -> ActionResponse:
    """Save one amendment; returns the stored item's ID on success."""
    try:
        item = service.upsert_revenue_item(
            deal_id, month, item_type, amount, notes=notes, created_by=created_by
        )
    except RevenueError as e:
        logger.warning(
            "revenue.upsert_failed",
            deal_id=deal_id,
            month=str(month),
            item_type=item_type,
            kind=e.kind,
            error=e.message,
        )
        return ActionResponse.fail(e)
    return ActionResponse.ok({"id": item.id})


def delete_revenue_item(
    service: RevenueService,
    deal_id: str,
    month: str | date,
    item_type: str,
    user: str | None = None,
) -> ActionResponse:
    """Reset one cell to its default. Succeeds whether or not a row existed."""
    try:
        service.delete_revenue_item(deal_id, month, item_type, user=user)
    except RevenueError as e:
        logger.warning(
            "revenue.delete_failed",
            deal_id=deal_id,
            month=str(month),
            item_type=item_type,
            kind=e.kind,
            error=e.message,
        )
        return ActionResponse.fail(e)
    return ActionResponse.ok()
