"""Revenue service: schedule reads and the single write path for amendments."""

import math
import re
from collections.abc import Callable
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from .. import audit
from ..db.repository import Database, Deal, RevenueItem
from ..db.tables import DEAL_STATUSES, ITEM_TYPES
from ..errors import NotFoundError, ValidationError
from .months import month_key, parse_month
from .schedule import RevenueSchedule, build_schedule

logger = structlog.get_logger(__name__)

MAX_NOTES_LENGTH = 1000

# Money columns are Numeric(14, 2): 12 integer digits, 2 decimal places
MAX_AMOUNT = Decimal("1e12")
CENT = Decimal("0.01")

FEE_LABELS = {
    "amount": "Amount",
    "audit_fee": "Audit fee",
    "retainer_monthly": "Monthly retainer",
    "custom_dev_fee": "Custom development fee",
}


def validate_amount(value: Any, field: str = "amount") -> Decimal:
    """Coerce a money value to Decimal, rejecting anything but finite values >= 0.

    Accepts int, float, Decimal and numeric strings. Booleans, NaN, infinities,
    negatives, non-numeric input, values too large for the money columns and
    sub-cent fractions raise ``ValidationError``.
    """
    message = f"{FEE_LABELS.get(field, field)} must be a non-negative number"

    if value is None or isinstance(value, bool):
        raise ValidationError(message, field=field)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(message, field=field)

    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(message, field=field) from e

    if not amount.is_finite() or amount < 0 or amount >= MAX_AMOUNT:
        raise ValidationError(message, field=field)
    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"{FEE_LABELS.get(field, field)} must have at most 2 decimal places",
            field=field,
        )
    return amount


def validate_item_type(item_type: Any) -> str:
    """Ensure the line item is one of the three revenue types."""
    if item_type not in ITEM_TYPES:
        raise ValidationError(
            f"Item type must be one of: {', '.join(ITEM_TYPES)}",
            field="item_type",
        )
    return item_type


def validate_notes(notes: Any) -> str | None:
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise ValidationError("Notes must be text", field="notes")
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Notes must be at most {MAX_NOTES_LENGTH} characters", field="notes"
        )
    return notes or None


def _validate_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", field=field) from e


def validate_deal_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalize deal fields supplied on create or update."""
    clean: dict[str, Any] = {}
    for key, value in fields.items():
        if key in ("audit_fee", "retainer_monthly", "custom_dev_fee"):
            clean[key] = validate_amount(value, field=key)
        elif key in ("revenue_start_date", "revenue_end_date"):
            clean[key] = _validate_date(value, key)
        elif key == "status":
            if value not in DEAL_STATUSES:
                raise ValidationError(
                    f"Status must be one of: {', '.join(DEAL_STATUSES)}", field="status"
                )
            clean[key] = value
        elif key == "currency":
            code = str(value or "").strip().upper()
            if not re.fullmatch(r"[A-Z]{3}", code):
                raise ValidationError("Currency must be a 3-letter ISO code", field="currency")
            clean[key] = code
        elif key == "title":
            title = str(value or "").strip()
            if not title:
                raise ValidationError("Title is required", field="title")
            clean[key] = title
        else:
            raise ValidationError(f"Unknown deal field: {key}", field=key)
    return clean


class RevenueService:
    """Reads revenue schedules and writes per-cell amendments.

    ``clock`` supplies today's date. Ongoing deals extend through the clock's
    current month, so tests and reports can pin it.
    """

    def __init__(
        self,
        db: Database,
        clock: Callable[[], date] | None = None,
        default_currency: str = "USD",
    ):
        self.db = db
        self.clock = clock or date.today
        self.default_currency = default_currency

    # Deals

    def get_deal(self, deal_id: str) -> Deal:
        """Get a deal or raise NotFoundError."""
        deal = self.db.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal", deal_id)
        return deal

    def list_deals(self, status: str | None = None) -> list[Deal]:
        if status is not None:
            validate_deal_fields({"status": status})
        return self.db.list_deals(status=status)

    def create_deal(self, title: str, user: str | None = None, **fields: Any) -> Deal:
        """Create a deal after validating its revenue fields."""
        fields.setdefault("currency", self.default_currency)
        clean = validate_deal_fields({"title": title, **fields})
        self._warn_inverted_range(clean.get("revenue_start_date"), clean.get("revenue_end_date"))

        deal = self.db.create_deal(**clean)
        audit.log_deal_created(deal.id, deal.title, user=user)
        return deal

    def update_deal(self, deal_id: str, user: str | None = None, **fields: Any) -> Deal:
        """Update deal fields; amendments are untouched even if the window moves."""
        clean = validate_deal_fields(fields)
        if not clean:
            return self.get_deal(deal_id)

        deal = self.db.update_deal(deal_id, **clean)
        if deal is None:
            raise NotFoundError("Deal", deal_id)
        self._warn_inverted_range(deal.revenue_start_date, deal.revenue_end_date)
        audit.log_deal_updated(deal_id, list(clean), user=user)
        return deal

    def delete_deal(self, deal_id: str, user: str | None = None) -> None:
        """Delete a deal and, by cascade, its amendments."""
        if not self.db.delete_deal(deal_id):
            raise NotFoundError("Deal", deal_id)
        audit.log_deal_deleted(deal_id, user=user)

    def _warn_inverted_range(self, start: date | None, end: date | None) -> None:
        if start and end and end < start:
            logger.warning(
                "deal.inverted_revenue_range",
                revenue_start_date=start,
                revenue_end_date=end,
            )

    # Schedule

    def get_deal_revenue_schedule(self, deal_id: str) -> RevenueSchedule:
        """Compute the revenue schedule for a deal.

        Raises:
            NotFoundError: If the deal does not exist.
        """
        deal = self.get_deal(deal_id)
        if deal.revenue_start_date is None:
            # No tracking window: skip the amendment query
            items: list[RevenueItem] = []
        else:
            items = self.db.get_revenue_items_for_deal(deal_id)

        schedule = build_schedule(deal, items, self.clock())
        logger.debug(
            "revenue.schedule_computed",
            deal_id=deal_id,
            months=len(schedule.months),
            amendments=len(items),
            total=schedule.totals.total,
        )
        return schedule

    def list_revenue_items(self, deal_id: str) -> list[RevenueItem]:
        """Raw stored amendments for a deal, including ones outside its window."""
        self.get_deal(deal_id)
        return self.db.get_revenue_items_for_deal(deal_id)

    # Amendments

    def upsert_revenue_item(
        self,
        deal_id: str,
        month: str | date,
        item_type: str,
        amount: Any,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> RevenueItem:
        """Create or replace the amendment for one (deal, month, item_type) cell.

        All validation happens before anything is written.

        Raises:
            ValidationError: Bad amount, month, item type or notes.
            NotFoundError: If the deal does not exist.
        """
        clean_amount = validate_amount(amount)
        key = month_key(parse_month(month))
        validate_item_type(item_type)
        clean_notes = validate_notes(notes)
        self.get_deal(deal_id)

        previous = self.db.get_revenue_item(deal_id, key, item_type)
        item = self.db.upsert_revenue_item(
            deal_id=deal_id,
            month=key,
            item_type=item_type,
            amount=clean_amount,
            notes=clean_notes,
            created_by=created_by,
        )
        audit.log_revenue_item_upserted(
            deal_id,
            key,
            item_type,
            item.amount,
            previous_amount=previous.amount if previous else None,
            user=created_by,
        )
        return item

    def delete_revenue_item(
        self,
        deal_id: str,
        month: str | date,
        item_type: str,
        user: str | None = None,
    ) -> bool:
        """Reset one cell to its default by removing its amendment.

        Removing a cell that has no amendment is a no-op, not an error.

        Returns:
            True if an amendment was removed.
        """
        key = month_key(parse_month(month))
        validate_item_type(item_type)

        removed = self.db.delete_revenue_item(deal_id, key, item_type)
        audit.log_revenue_item_deleted(deal_id, key, item_type, existed=removed, user=user)
        return removed
