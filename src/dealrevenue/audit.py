"""Audit logging for deal and revenue amendment changes.

Revenue items keep no history in the database: an upsert replaces the prior
amount. These events are the record of who changed which cell and when.

Configure via config.yaml:
    logging:
      enabled: true  # set to false to disable audit logging
      format: json  # or 'splunk' for key=value format
"""

from decimal import Decimal
from typing import Any

import structlog

# Module state
_logger: structlog.stdlib.BoundLogger | None = None
_enabled: bool = True


def configure(enabled: bool = True) -> None:
    """Enable or disable audit events."""
    global _enabled
    _enabled = enabled


def _get_logger() -> structlog.stdlib.BoundLogger:
    """Get or create the audit logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger("audit")
    return _logger


def _emit(
    event_type: str,
    action: str,
    **kwargs: Any,
) -> None:
    """Emit an audit log event.

    Args:
        event_type: Category of event (deal, revenue_item)
        action: Specific action (created, updated, deleted, upserted)
        **kwargs: Additional event-specific fields
    """
    if not _enabled:
        return

    logger = _get_logger()
    logger.info(
        f"{event_type}.{action}",
        event_type=event_type,
        action=action,
        **kwargs,
    )


# Deal events
def log_deal_created(deal_id: str, title: str, user: str | None = None) -> None:
    """Log a deal creation event."""
    _emit("deal", "created", deal_id=deal_id, title=title, user=user or "system")


def log_deal_updated(
    deal_id: str,
    fields: list[str],
    user: str | None = None,
) -> None:
    """Log a change to a deal's revenue fields or status."""
    _emit(
        "deal",
        "updated",
        deal_id=deal_id,
        fields=",".join(sorted(fields)),
        user=user or "system",
    )


def log_deal_deleted(deal_id: str, user: str | None = None) -> None:
    """Log a deal deletion (its revenue items cascade)."""
    _emit("deal", "deleted", deal_id=deal_id, user=user or "system")


# Revenue item events
def log_revenue_item_upserted(
    deal_id: str,
    month: str,
    item_type: str,
    amount: Decimal,
    previous_amount: Decimal | None = None,
    user: str | None = None,
) -> None:
    """Log an amendment write, including the value it replaced."""
    _emit(
        "revenue_item",
        "upserted",
        deal_id=deal_id,
        month=month,
        item_type=item_type,
        amount=float(amount),
        previous_amount=float(previous_amount) if previous_amount is not None else "default",
        user=user or "system",
    )


def log_revenue_item_deleted(
    deal_id: str,
    month: str,
    item_type: str,
    existed: bool,
    user: str | None = None,
) -> None:
    """Log a reset-to-default of a single cell."""
    _emit(
        "revenue_item",
        "deleted",
        deal_id=deal_id,
        month=month,
        item_type=item_type,
        existed=existed,
        user=user or "system",
    )
