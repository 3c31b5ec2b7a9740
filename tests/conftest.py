"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from dealrevenue.db import Database
from dealrevenue.revenue.service import RevenueService

# Fixed "today" for schedules of ongoing deals
TODAY = date(2024, 6, 15)


class MutableClock:
    """Clock whose date can be moved between calls."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def db(temp_db):
    """Create initialized database."""
    database = Database(temp_db)
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def clock():
    """Clock pinned to TODAY."""
    return MutableClock(TODAY)


@pytest.fixture
def service(db, clock):
    """Revenue service using the pinned clock."""
    return RevenueService(db, clock=clock)


@pytest.fixture
def make_deal(db):
    """Factory for deals with sensible defaults."""

    def _make(
        title: str = "Acme retainer",
        audit_fee: str = "0",
        retainer_monthly: str = "0",
        custom_dev_fee: str = "0",
        revenue_start_date: date | None = None,
        revenue_end_date: date | None = None,
        status: str = "won",
        currency: str = "USD",
    ):
        return db.create_deal(
            title=title,
            audit_fee=Decimal(audit_fee),
            retainer_monthly=Decimal(retainer_monthly),
            custom_dev_fee=Decimal(custom_dev_fee),
            revenue_start_date=revenue_start_date,
            revenue_end_date=revenue_end_date,
            status=status,
            currency=currency,
        )

    return _make
