"""Default schedule generation and amendment merging.

The schedule is never stored. It is recomputed on every read from the deal's
fee fields, its stored amendments and the evaluation date, so both functions
here are pure: the same inputs (including ``today``) give the same output.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from ..db.repository import Deal, RevenueItem
from .months import current_month, format_month, month_key, month_span

ZERO = Decimal("0")


@dataclass(frozen=True)
class DefaultMonth:
    """Unamended values for one month of a deal's revenue window."""

    month: date
    retainer: Decimal
    audit_fee: Decimal
    custom_dev_fee: Decimal

    @property
    def key(self) -> str:
        return month_key(self.month)


@dataclass
class MonthlyRevenueRow:
    """Resolved values for one month after amendments are applied."""

    month: date
    retainer: Decimal
    audit_fee: Decimal
    custom_dev_fee: Decimal
    is_retainer_amended: bool = False
    is_audit_amended: bool = False
    is_custom_dev_amended: bool = False

    @property
    def key(self) -> str:
        return month_key(self.month)

    @property
    def label(self) -> str:
        return format_month(self.month)

    @property
    def total(self) -> Decimal:
        return self.retainer + self.audit_fee + self.custom_dev_fee

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.key,
            "label": self.label,
            "retainer": float(self.retainer),
            "audit_fee": float(self.audit_fee),
            "custom_dev_fee": float(self.custom_dev_fee),
            "total": float(self.total),
            "is_retainer_amended": self.is_retainer_amended,
            "is_audit_amended": self.is_audit_amended,
            "is_custom_dev_amended": self.is_custom_dev_amended,
        }


@dataclass
class RevenueTotals:
    """Field-wise sums across all months of a schedule."""

    retainer: Decimal = ZERO
    audit_fee: Decimal = ZERO
    custom_dev_fee: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.retainer + self.audit_fee + self.custom_dev_fee

    def add_row(self, row: MonthlyRevenueRow) -> None:
        """Accumulate one month's resolved values."""
        self.retainer += row.retainer
        self.audit_fee += row.audit_fee
        self.custom_dev_fee += row.custom_dev_fee

    def to_dict(self) -> dict[str, float]:
        return {
            "retainer": float(self.retainer),
            "audit_fee": float(self.audit_fee),
            "custom_dev_fee": float(self.custom_dev_fee),
            "total": float(self.total),
        }


@dataclass
class RevenueSchedule:
    """Month-by-month revenue projection for one deal, plus totals."""

    deal_id: str
    currency: str
    retainer_monthly: Decimal
    audit_fee: Decimal
    custom_dev_fee: Decimal
    revenue_start_date: date | None
    revenue_end_date: date | None
    months: list[MonthlyRevenueRow] = field(default_factory=list)
    totals: RevenueTotals = field(default_factory=RevenueTotals)

    @property
    def is_empty(self) -> bool:
        return not self.months

    def row_for(self, month: date) -> MonthlyRevenueRow | None:
        """Find the row for a month, if it is inside the window."""
        key = month_key(month)
        for row in self.months:
            if row.key == key:
                return row
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON API and action responses."""
        return {
            "deal_id": self.deal_id,
            "currency": self.currency,
            "months": [row.to_dict() for row in self.months],
            "totals": self.totals.to_dict(),
            "deal_defaults": {
                "retainer_monthly": float(self.retainer_monthly),
                "audit_fee": float(self.audit_fee),
                "custom_dev_fee": float(self.custom_dev_fee),
            },
            "revenue_start_date": (
                self.revenue_start_date.isoformat() if self.revenue_start_date else None
            ),
            "revenue_end_date": (
                self.revenue_end_date.isoformat() if self.revenue_end_date else None
            ),
        }


def generate_default_schedule(deal: Deal, today: date) -> list[DefaultMonth]:
    """Derive the unamended monthly values for a deal.

    The window runs from the start date's month through the end date's month,
    or through ``today``'s month when the deal is ongoing. One-time fees
    (audit, custom dev) land in the first month only; the retainer applies to
    every month.

    Args:
        deal: Deal whose fee fields and date range drive the schedule.
        today: Evaluation date; only used when the deal has no end date.

    Returns:
        Ascending list of months, empty when there is no start date or the
        range is inverted.
    """
    if deal.revenue_start_date is None:
        return []

    end = deal.revenue_end_date or current_month(today)
    months = month_span(deal.revenue_start_date, end)

    return [
        DefaultMonth(
            month=month,
            retainer=deal.retainer_monthly,
            audit_fee=deal.audit_fee if idx == 0 else ZERO,
            custom_dev_fee=deal.custom_dev_fee if idx == 0 else ZERO,
        )
        for idx, month in enumerate(months)
    ]


def merge_schedule(
    deal: Deal,
    defaults: list[DefaultMonth],
    items: list[RevenueItem],
) -> RevenueSchedule:
    """Overlay stored amendments on the default months.

    An amendment replaces the default for its (month, item_type) cell and
    flags it as amended. Amendments for months outside ``defaults`` are
    ignored but left in storage, so they reappear if the window grows back
    over them. Stored amounts are used as-is, including invalid ones.
    """
    amendments: dict[tuple[str, str], Decimal] = {
        (item.month, item.item_type): item.amount for item in items
    }

    schedule = RevenueSchedule(
        deal_id=deal.id,
        currency=deal.currency,
        retainer_monthly=deal.retainer_monthly,
        audit_fee=deal.audit_fee,
        custom_dev_fee=deal.custom_dev_fee,
        revenue_start_date=deal.revenue_start_date,
        revenue_end_date=deal.revenue_end_date,
    )

    for default in defaults:
        key = default.key
        retainer = amendments.get((key, "retainer"))
        audit = amendments.get((key, "audit_fee"))
        custom_dev = amendments.get((key, "custom_dev_fee"))

        row = MonthlyRevenueRow(
            month=default.month,
            retainer=default.retainer if retainer is None else retainer,
            audit_fee=default.audit_fee if audit is None else audit,
            custom_dev_fee=default.custom_dev_fee if custom_dev is None else custom_dev,
            is_retainer_amended=retainer is not None,
            is_audit_amended=audit is not None,
            is_custom_dev_amended=custom_dev is not None,
        )
        schedule.months.append(row)
        schedule.totals.add_row(row)

    return schedule


def build_schedule(deal: Deal, items: list[RevenueItem], today: date) -> RevenueSchedule:
    """Generate defaults for ``deal`` and merge ``items`` over them."""
    return merge_schedule(deal, generate_default_schedule(deal, today), items)
