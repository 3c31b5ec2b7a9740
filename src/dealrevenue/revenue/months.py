"""Calendar month arithmetic for revenue schedules.

Months are represented as ``date`` objects pinned to the first of the month
and stored/compared as canonical ``YYYY-MM-01`` keys.
"""

import re
from datetime import date

from ..errors import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def first_of_month(d: date) -> date:
    """Pin a date to the first day of its month."""
    return d.replace(day=1)


def month_key(d: date) -> str:
    """Canonical storage key for the month containing ``d``."""
    return f"{d.year:04d}-{d.month:02d}-01"


def parse_month(value: str | date) -> date:
    """Parse ``YYYY-MM`` or ``YYYY-MM-01`` (or a date) into a first-of-month date.

    Raises:
        ValidationError: If the value is not a first-of-month month identifier.
    """
    if isinstance(value, date):
        return first_of_month(value)

    if not isinstance(value, str):
        raise ValidationError("Must be YYYY-MM-DD (first of month)", field="month")

    match = _MONTH_RE.match(value.strip())
    if not match:
        raise ValidationError("Must be YYYY-MM-DD (first of month)", field="month")

    year, month, day = match.groups()
    if day is not None and day != "01":
        raise ValidationError("Must be YYYY-MM-DD (first of month)", field="month")
    try:
        return date(int(year), int(month), 1)
    except ValueError as e:
        raise ValidationError("Must be YYYY-MM-DD (first of month)", field="month") from e


def add_months(d: date, n: int) -> date:
    """First of the month ``n`` months after (or before, if negative) ``d``."""
    index = d.year * 12 + (d.month - 1) + n
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_span(start: date, end: date) -> list[date]:
    """Every first-of-month from start's month through end's month, inclusive.

    Returns an empty list when end's month precedes start's month.
    """
    count = months_between(start, end) + 1
    first = first_of_month(start)
    return [add_months(first, i) for i in range(max(count, 0))]


def current_month(today: date | None = None) -> date:
    """First of the current calendar month."""
    return first_of_month(today or date.today())


def format_month(d: date) -> str:
    """Display label, e.g. ``Jan 2024``."""
    return d.strftime("%b %Y")
