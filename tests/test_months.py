"""Tests for calendar month arithmetic."""

from datetime import date

import pytest

from dealrevenue.errors import ValidationError
from dealrevenue.revenue.months import (
    add_months,
    current_month,
    format_month,
    month_key,
    month_span,
    months_between,
    parse_month,
)


class TestParseMonth:
    """Tests for parse_month."""

    def test_first_of_month(self):
        assert parse_month("2024-03-01") == date(2024, 3, 1)

    def test_year_month(self):
        assert parse_month("2024-03") == date(2024, 3, 1)

    def test_date_is_pinned_to_first(self):
        assert parse_month(date(2024, 3, 17)) == date(2024, 3, 1)

    @pytest.mark.parametrize(
        "value",
        ["2024-03-15", "2024-13-01", "2024-00", "March 2024", "", "24-03-01", None, 202403],
    )
    def test_rejects_invalid(self, value):
        """Anything but a first-of-month identifier is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_month(value)
        assert exc_info.value.field == "month"
        assert "first of month" in exc_info.value.message


class TestMonthArithmetic:
    """Tests for month stepping and spans."""

    def test_month_key(self):
        assert month_key(date(2024, 1, 31)) == "2024-01-01"

    def test_add_months_across_year(self):
        assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)

    def test_add_months_negative(self):
        assert add_months(date(2024, 2, 1), -2) == date(2023, 12, 1)

    def test_months_between(self):
        assert months_between(date(2023, 11, 20), date(2024, 2, 3)) == 3

    def test_span_inclusive(self):
        """Span includes both endpoint months, ignoring the day of month."""
        span = month_span(date(2023, 11, 20), date(2024, 2, 3))
        assert span == [
            date(2023, 11, 1),
            date(2023, 12, 1),
            date(2024, 1, 1),
            date(2024, 2, 1),
        ]

    def test_span_single_month(self):
        assert month_span(date(2024, 5, 1), date(2024, 5, 31)) == [date(2024, 5, 1)]

    def test_span_inverted_is_empty(self):
        assert month_span(date(2024, 5, 1), date(2024, 4, 30)) == []

    def test_current_month(self):
        assert current_month(date(2024, 6, 15)) == date(2024, 6, 1)

    def test_format_month(self):
        assert format_month(date(2024, 1, 1)) == "Jan 2024"
