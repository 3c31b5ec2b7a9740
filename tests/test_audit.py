"""Tests for audit events emitted by revenue mutations."""

from datetime import date

import pytest
from structlog.testing import capture_logs

from dealrevenue import audit
from dealrevenue.errors import ValidationError


@pytest.fixture(autouse=True)
def audit_enabled():
    audit.configure(enabled=True)
    yield
    audit.configure(enabled=True)


def _events(logs, name):
    return [entry for entry in logs if entry["event"] == name]


class TestRevenueItemEvents:
    """Audit records for amendment writes and resets."""

    def test_upsert_records_previous_amount(self, service, make_deal):
        deal = make_deal(retainer_monthly="100", revenue_start_date=date(2024, 1, 1))

        with capture_logs() as logs:
            service.upsert_revenue_item(deal.id, "2024-02", "retainer", "150", created_by="dana")
            service.upsert_revenue_item(deal.id, "2024-02", "retainer", "175")

        first, second = _events(logs, "revenue_item.upserted")
        assert first["previous_amount"] == "default"
        assert first["amount"] == 150.0
        assert first["user"] == "dana"
        assert first["month"] == "2024-02-01"
        assert second["previous_amount"] == 150.0
        assert second["user"] == "system"

    def test_delete_records_whether_row_existed(self, service, make_deal):
        deal = make_deal(revenue_start_date=date(2024, 1, 1))
        service.upsert_revenue_item(deal.id, "2024-01", "audit_fee", "10")

        with capture_logs() as logs:
            service.delete_revenue_item(deal.id, "2024-01", "audit_fee")
            service.delete_revenue_item(deal.id, "2024-01", "audit_fee")

        events = _events(logs, "revenue_item.deleted")
        assert [e["existed"] for e in events] == [True, False]

    def test_failed_validation_emits_nothing(self, service, make_deal):
        deal = make_deal(revenue_start_date=date(2024, 1, 1))

        with capture_logs() as logs:
            with pytest.raises(ValidationError):
                service.upsert_revenue_item(deal.id, "2024-01", "retainer", -1)

        assert _events(logs, "revenue_item.upserted") == []


class TestDealEvents:
    def test_update_lists_changed_fields(self, service):
        deal = service.create_deal("Acme")

        with capture_logs() as logs:
            service.update_deal(deal.id, status="won", retainer_monthly="50")

        (event,) = _events(logs, "deal.updated")
        assert event["fields"] == "retainer_monthly,status"


def test_disabled_emits_nothing():
    audit.configure(enabled=False)

    with capture_logs() as logs:
        audit.log_deal_deleted("d1")

    assert logs == []
