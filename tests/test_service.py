"""Tests for the revenue service, including end-to-end schedule properties."""

from datetime import date
from decimal import Decimal

import pytest

from dealrevenue.errors import NotFoundError, ValidationError
from dealrevenue.revenue.service import (
    RevenueService,
    validate_amount,
    validate_deal_fields,
)

TODAY = date(2024, 6, 15)


class TestValidateAmount:
    """Tests for validate_amount."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, Decimal("0")),
            (1500, Decimal("1500")),
            (12.5, Decimal("12.5")),
            ("99.99", Decimal("99.99")),
            (Decimal("7"), Decimal("7")),
            ("1.000", Decimal("1")),
            ("999999999999.99", Decimal("999999999999.99")),
        ],
    )
    def test_accepts(self, value, expected):
        assert validate_amount(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            -5, -0.01, "-1",
            float("nan"), float("inf"), "NaN", "Infinity",
            "abc", "", None, True,
            "1e400", "1e12", 1e12,
        ],
    )
    def test_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_amount(value)
        assert exc_info.value.message == "Amount must be a non-negative number"
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("value", ["0.004", 0.125, Decimal("10.001")])
    def test_rejects_sub_cent(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_amount(value)
        assert exc_info.value.message == "Amount must have at most 2 decimal places"

    def test_fee_field_message(self):
        with pytest.raises(ValidationError, match="Monthly retainer"):
            validate_amount(-1, field="retainer_monthly")


class TestValidateDealFields:
    """Tests for validate_deal_fields."""

    def test_normalizes(self):
        clean = validate_deal_fields(
            {
                "title": "  Acme  ",
                "currency": "eur",
                "audit_fee": "100",
                "revenue_start_date": "2024-01-15",
                "revenue_end_date": "",
            }
        )

        assert clean == {
            "title": "Acme",
            "currency": "EUR",
            "audit_fee": Decimal("100"),
            "revenue_start_date": date(2024, 1, 15),
            "revenue_end_date": None,
        }

    @pytest.mark.parametrize(
        "fields,field",
        [
            ({"title": " "}, "title"),
            ({"status": "pending"}, "status"),
            ({"currency": "dollars"}, "currency"),
            ({"revenue_start_date": "Jan 2024"}, "revenue_start_date"),
            ({"custom_dev_fee": -1}, "custom_dev_fee"),
            ({"value": 1}, "value"),
        ],
    )
    def test_rejects(self, fields, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_deal_fields(fields)
        assert exc_info.value.field == field


class TestDealManagement:
    """Tests for deal operations on the service."""

    def test_create_uses_default_currency(self, db, clock):
        service = RevenueService(db, clock=clock, default_currency="GBP")

        deal = service.create_deal("Acme", retainer_monthly="100")

        assert deal.currency == "GBP"
        assert deal.retainer_monthly == Decimal("100")

    def test_get_missing_deal(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.get_deal("missing")
        assert exc_info.value.kind == "not_found"
        assert exc_info.value.message == "Deal not found"

    def test_update_missing_deal(self, service):
        with pytest.raises(NotFoundError):
            service.update_deal("missing", title="x")

    def test_update_without_fields_returns_deal(self, service):
        deal = service.create_deal("Acme")
        assert service.update_deal(deal.id).id == deal.id

    def test_delete_missing_deal(self, service):
        with pytest.raises(NotFoundError):
            service.delete_deal("missing")

    def test_delete_removes_amendments(self, service, db):
        deal = service.create_deal("Acme", revenue_start_date=date(2024, 1, 1))
        service.upsert_revenue_item(deal.id, "2024-01-01", "retainer", 5)

        service.delete_deal(deal.id)

        assert db.get_revenue_items_for_deal(deal.id) == []


class TestScheduleProperties:
    """Observable schedule behavior through the service."""

    def test_empty_schedule_without_start_date(self, service):
        """A deal with no start date has no months and zero totals."""
        deal = service.create_deal("Acme", audit_fee=1000, retainer_monthly=500)

        schedule = service.get_deal_revenue_schedule(deal.id)

        assert schedule.months == []
        assert schedule.totals.to_dict() == {
            "retainer": 0.0,
            "audit_fee": 0.0,
            "custom_dev_fee": 0.0,
            "total": 0.0,
        }

    def test_unknown_deal(self, service):
        with pytest.raises(NotFoundError):
            service.get_deal_revenue_schedule("missing")

    def test_single_current_month(self, service):
        """Ongoing deal starting this month has one month with all fees."""
        deal = service.create_deal(
            "Acme",
            audit_fee=1000,
            retainer_monthly=500,
            custom_dev_fee=0,
            revenue_start_date=TODAY.replace(day=1),
        )

        schedule = service.get_deal_revenue_schedule(deal.id)

        assert len(schedule.months) == 1
        row = schedule.months[0]
        assert row.retainer == Decimal("500")
        assert row.audit_fee == Decimal("1000")
        assert row.custom_dev_fee == 0
        assert row.total == Decimal("1500")
        assert not (row.is_retainer_amended or row.is_audit_amended or row.is_custom_dev_amended)

    @pytest.fixture
    def three_month_deal(self, service):
        return service.create_deal(
            "Acme",
            audit_fee=800,
            retainer_monthly=200,
            custom_dev_fee=300,
            revenue_start_date=date(2024, 1, 1),
            revenue_end_date=date(2024, 3, 1),
        )

    def test_recurring_retainer(self, service, three_month_deal):
        schedule = service.get_deal_revenue_schedule(three_month_deal.id)

        assert [r.retainer for r in schedule.months] == [Decimal("200")] * 3
        assert [r.audit_fee for r in schedule.months] == [Decimal("800"), 0, 0]
        assert [r.custom_dev_fee for r in schedule.months] == [Decimal("300"), 0, 0]

    def test_amendment_then_reset(self, service, three_month_deal):
        """Upsert overrides one cell; delete restores the default."""
        deal_id = three_month_deal.id

        service.upsert_revenue_item(deal_id, "2024-02-01", "retainer", 999)
        amended = service.get_deal_revenue_schedule(deal_id)

        assert [r.retainer for r in amended.months] == [
            Decimal("200"),
            Decimal("999"),
            Decimal("200"),
        ]
        assert [r.is_retainer_amended for r in amended.months] == [False, True, False]

        service.delete_revenue_item(deal_id, "2024-02-01", "retainer")
        reset = service.get_deal_revenue_schedule(deal_id)

        assert reset.months[1].retainer == Decimal("200")
        assert not reset.months[1].is_retainer_amended

    def test_repeated_reads_identical(self, service, three_month_deal):
        service.upsert_revenue_item(three_month_deal.id, "2024-03-01", "audit_fee", 10)

        first = service.get_deal_revenue_schedule(three_month_deal.id)
        second = service.get_deal_revenue_schedule(three_month_deal.id)

        assert first.to_dict() == second.to_dict()

    def test_invalid_amount_does_not_write(self, service, three_month_deal):
        deal_id = three_month_deal.id
        service.upsert_revenue_item(deal_id, "2024-01-01", "audit_fee", 50)
        before = service.get_deal_revenue_schedule(deal_id).to_dict()

        with pytest.raises(ValidationError):
            service.upsert_revenue_item(deal_id, "2024-01-01", "audit_fee", -5)
        with pytest.raises(ValidationError):
            service.upsert_revenue_item(deal_id, "2024-02-01", "audit_fee", -5)

        assert service.get_deal_revenue_schedule(deal_id).to_dict() == before
        assert len(service.list_revenue_items(deal_id)) == 1

    def test_ongoing_window_grows_with_clock(self, service, clock):
        """Months appear as time passes, carrying default values."""
        deal = service.create_deal(
            "Acme", retainer_monthly=100, audit_fee=50, revenue_start_date=date(2024, 4, 1)
        )
        service.upsert_revenue_item(deal.id, "2024-05-01", "retainer", 120)

        clock.today = date(2024, 6, 15)
        before = service.get_deal_revenue_schedule(deal.id)
        clock.today = date(2024, 9, 2)
        after = service.get_deal_revenue_schedule(deal.id)

        assert len(after.months) - len(before.months) == 3
        new_rows = after.months[len(before.months):]
        assert [r.key for r in new_rows] == ["2024-07-01", "2024-08-01", "2024-09-01"]
        for row in new_rows:
            assert row.retainer == Decimal("100")
            assert row.audit_fee == 0
            assert not row.is_retainer_amended
        assert after.months[1].retainer == Decimal("120")

    def test_orphaned_amendment_reappears(self, service, three_month_deal):
        """Shrinking the window hides amendments; growing it back restores them."""
        deal_id = three_month_deal.id
        service.upsert_revenue_item(deal_id, "2024-03-01", "retainer", 777)

        service.update_deal(deal_id, revenue_end_date=date(2024, 2, 1))
        shrunk = service.get_deal_revenue_schedule(deal_id)
        assert len(shrunk.months) == 2
        assert len(service.list_revenue_items(deal_id)) == 1

        service.update_deal(deal_id, revenue_end_date=date(2024, 4, 1))
        grown = service.get_deal_revenue_schedule(deal_id)
        assert grown.months[2].retainer == Decimal("777")
        assert grown.months[2].is_retainer_amended


class TestMutations:
    """Tests for upsert and delete validation."""

    @pytest.fixture
    def deal(self, service):
        return service.create_deal("Acme", revenue_start_date=date(2024, 1, 1))

    def test_upsert_normalizes_month(self, service, deal):
        item = service.upsert_revenue_item(deal.id, "2024-02", "retainer", "10.5")

        assert item.month == "2024-02-01"
        assert item.amount == Decimal("10.5")

    def test_upsert_accepts_date(self, service, deal):
        item = service.upsert_revenue_item(deal.id, date(2024, 2, 1), "retainer", 1)
        assert item.month == "2024-02-01"

    def test_upsert_replaces(self, service, deal):
        service.upsert_revenue_item(deal.id, "2024-02-01", "retainer", 1)
        service.upsert_revenue_item(deal.id, "2024-02-01", "retainer", 2, notes="second")

        items = service.list_revenue_items(deal.id)

        assert len(items) == 1
        assert items[0].amount == Decimal("2")
        assert items[0].notes == "second"

    def test_upsert_unknown_deal(self, service):
        with pytest.raises(NotFoundError):
            service.upsert_revenue_item("missing", "2024-02-01", "retainer", 1)

    def test_upsert_bad_item_type(self, service, deal):
        with pytest.raises(ValidationError) as exc_info:
            service.upsert_revenue_item(deal.id, "2024-02-01", "bonus", 1)
        assert exc_info.value.field == "item_type"

    def test_upsert_bad_month(self, service, deal):
        with pytest.raises(ValidationError) as exc_info:
            service.upsert_revenue_item(deal.id, "2024-02-15", "retainer", 1)
        assert exc_info.value.field == "month"

    def test_upsert_notes_too_long(self, service, deal):
        with pytest.raises(ValidationError) as exc_info:
            service.upsert_revenue_item(deal.id, "2024-02-01", "retainer", 1, notes="x" * 1001)
        assert exc_info.value.field == "notes"

    def test_upsert_rejects_oversized_amount(self, service, deal):
        """Amounts beyond the money column never reach storage."""
        with pytest.raises(ValidationError):
            service.upsert_revenue_item(deal.id, "2024-01-01", "retainer", "1e400")

        assert service.list_revenue_items(deal.id) == []
        totals = service.get_deal_revenue_schedule(deal.id).totals
        assert totals.total == Decimal("0")

    def test_upsert_rejects_sub_cent_amount(self, service, deal):
        with pytest.raises(ValidationError):
            service.upsert_revenue_item(deal.id, "2024-01-01", "retainer", "0.004")
        assert service.list_revenue_items(deal.id) == []

    def test_amount_validated_before_deal_lookup(self, service):
        """Bad amounts are reported even for unknown deals."""
        with pytest.raises(ValidationError):
            service.upsert_revenue_item("missing", "2024-02-01", "retainer", -1)

    def test_delete_missing_is_noop(self, service, deal):
        assert service.delete_revenue_item(deal.id, "2024-02-01", "retainer") is False

    def test_delete_existing(self, service, deal):
        service.upsert_revenue_item(deal.id, "2024-02-01", "retainer", 1)
        assert service.delete_revenue_item(deal.id, "2024-02", "retainer") is True

    def test_delete_bad_item_type(self, service, deal):
        with pytest.raises(ValidationError):
            service.delete_revenue_item(deal.id, "2024-02-01", "bonus")
