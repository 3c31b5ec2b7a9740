"""Pydantic schemas for web request validation.

Money fields are accepted loosely here and validated by the revenue service,
so every bad amount produces the same field-level error message.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

# Passed through untouched so booleans reach the service and are rejected
Money = Any


class DealCreate(BaseModel):
    """New deal payload."""

    title: str
    status: str = "open"
    audit_fee: Money = 0
    retainer_monthly: Money = 0
    custom_dev_fee: Money = 0
    revenue_start_date: date | None = None
    revenue_end_date: date | None = None
    currency: str | None = None


class DealUpdate(BaseModel):
    """Partial deal update; only fields present in the body are changed."""

    title: str | None = None
    status: str | None = None
    audit_fee: Money = None
    retainer_monthly: Money = None
    custom_dev_fee: Money = None
    revenue_start_date: date | None = None
    revenue_end_date: date | None = None
    currency: str | None = None


class RevenueItemUpsert(BaseModel):
    """Amendment for one month and line item."""

    month: str = Field(description="YYYY-MM-01 (first of month) or YYYY-MM")
    item_type: str
    amount: Money
    notes: str | None = None
    created_by: str | None = None


class RevenueItemDelete(BaseModel):
    """Cell to reset to its default value."""

    month: str
    item_type: str
