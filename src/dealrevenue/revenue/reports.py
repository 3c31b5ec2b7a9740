"""Portfolio reporting: revenue recognized per month across deals."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

import structlog

from ..db.repository import Database
from .months import add_months, current_month, format_month, month_key
from .schedule import ZERO, build_schedule

logger = structlog.get_logger(__name__)


@dataclass
class MonthlyRevenueData:
    """Revenue for one calendar month summed across deals."""

    month: date
    retainer: Decimal = ZERO
    audit_fee: Decimal = ZERO
    custom_dev_fee: Decimal = ZERO
    deal_ids: set[str] = field(default_factory=set)

    @property
    def total(self) -> Decimal:
        return self.retainer + self.audit_fee + self.custom_dev_fee

    @property
    def deal_count(self) -> int:
        """Deals with a row in this month (amounts may still be zero)."""
        return len(self.deal_ids)

    def to_dict(self) -> dict:
        return {
            "month": month_key(self.month),
            "label": format_month(self.month),
            "retainer": float(self.retainer),
            "audit_fee": float(self.audit_fee),
            "custom_dev_fee": float(self.custom_dev_fee),
            "total": float(self.total),
            "deal_count": self.deal_count,
        }


def monthly_revenue(
    db: Database,
    months: int = 12,
    today: date | None = None,
    statuses: list[str] | tuple[str, ...] = ("won",),
) -> list[MonthlyRevenueData]:
    """Sum merged deal schedules per month over the trailing window.

    The window is the ``months`` calendar months ending with the current
    month. Each deal contributes its amended schedule, so per-cell overrides
    show up in the portfolio numbers. Currencies are not converted.

    Args:
        db: Database connection.
        months: Number of months in the window.
        today: Evaluation date (defaults to today).
        statuses: Deal statuses to include.

    Returns:
        One entry per month in the window, ascending.
    """
    if months < 1:
        raise ValueError("months must be at least 1")

    end = current_month(today)
    start = add_months(end, -(months - 1))
    buckets = {
        month_key(add_months(start, i)): MonthlyRevenueData(month=add_months(start, i))
        for i in range(months)
    }

    deals = [d for d in db.list_deals_by_status(statuses) if d.revenue_start_date]
    items_by_deal = db.get_revenue_items_for_deals([d.id for d in deals])

    for deal in deals:
        schedule = build_schedule(deal, items_by_deal[deal.id], end)
        for row in schedule.months:
            bucket = buckets.get(row.key)
            if bucket is None:
                continue
            bucket.retainer += row.retainer
            bucket.audit_fee += row.audit_fee
            bucket.custom_dev_fee += row.custom_dev_fee
            bucket.deal_ids.add(deal.id)

    currencies = {d.currency for d in deals}
    if len(currencies) > 1:
        logger.warning("report.mixed_currencies", currencies=",".join(sorted(currencies)))

    return [buckets[key] for key in sorted(buckets)]
