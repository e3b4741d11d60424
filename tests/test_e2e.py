"""
End-to-end tests: the client stack against the dev backend.

The ``services`` fixture wires build_services() to a TestClient, so every
request goes through ApiClient, QueryCache and the FastAPI routes.
"""

import pytest

from client.errors import ClientError, FormValidationError
from client.models import DashboardStats, Vendor
from client.query_keys import QueryKeys
from client.uploads import UploadFile


@pytest.fixture()
def signed_in(services):
    user = services.auth.restore()
    assert user is not None
    return services


class TestSessionFlow:
    def test_restore_logs_in_as_demo(self, services, notifier):
        user = services.auth.restore()
        assert user.username == "demo"
        assert services.store.token
        assert notifier.titles == ["Welcome to PlanHaus!"]

    def test_restore_verifies_existing_session(self, signed_in, notifier):
        token = signed_in.store.token
        assert signed_in.auth.restore().has_completed_intake
        assert signed_in.store.token == token
        assert notifier.titles == ["Welcome to PlanHaus!"]

    def test_recovers_after_server_drops_sessions(self, signed_in, demo_store):
        old = signed_in.store.token
        demo_store.revoke_all_sessions()
        result = signed_in.hooks.use_budget(1)
        assert result.is_success
        assert len(result.data) == 5
        assert signed_in.store.token != old

    def test_logout(self, signed_in, demo_store):
        signed_in.auth.logout()
        assert signed_in.store.token is None
        assert demo_store.sessions == {}


class TestReadsAndMutations:
    def test_dashboard_and_summary(self, signed_in):
        stats = signed_in.hooks.use_dashboard_stats().data
        assert isinstance(stats, DashboardStats)
        assert stats.booked_vendors == 2
        summary = signed_in.hooks.use_budget_summary(1)
        assert [c.name for c in summary.categories] == ["Venue", "Catering", "Photography", "Flowers"]
        assert summary.total_actual == 7800.0

    def test_create_vendor_refreshes_lists_and_stats(self, signed_in):
        hooks = signed_in.hooks
        assert len(hooks.use_vendors(1).data) == 5
        assert hooks.use_dashboard_stats().data.total_vendors == 5

        vendor = hooks.create_vendor(1).mutate(
            {"name": "Sweet Tiers", "category": "cake", "status": "booked"})
        assert isinstance(vendor, Vendor)
        assert vendor.is_booked

        assert len(hooks.use_vendors(1).data) == 6
        stats = hooks.use_dashboard_stats().data
        assert (stats.total_vendors, stats.booked_vendors) == (6, 3)

    def test_invalid_form_never_reaches_server(self, signed_in, demo_store):
        before = len(demo_store.tables["tasks"])
        with pytest.raises(FormValidationError):
            signed_in.hooks.create_task(1).mutate({"title": "", "priority": "urgent"})
        assert len(demo_store.tables["tasks"]) == before

    def test_bulk_rsvp(self, signed_in):
        guests = signed_in.hooks.bulk_update_guests(1).mutate([2, 4], {"rsvpStatus": "attending"})
        assert {g.rsvp_status for g in guests} == {"attending"}
        assert signed_in.hooks.use_dashboard_stats().data.confirmed_guests == 4

    def test_delete_then_missing(self, signed_in, notifier):
        signed_in.hooks.delete_task(1).mutate(2)
        assert all(t.id != 2 for t in signed_in.hooks.use_tasks(1).data)
        with pytest.raises(ClientError) as exc_info:
            signed_in.hooks.delete_task(1).mutate(2)
        assert exc_info.value.message == "Task not found"
        assert notifier.titles[-1] == "Error"

    def test_global_lists(self, signed_in):
        assert len(signed_in.hooks.use_guests().data) == 4
        assert signed_in.cache.get_state(QueryKeys.global_list("guests")).data


class TestAnalysis:
    def test_csv_round_trip(self, signed_in):
        handle = signed_in.analyzer.analyze(UploadFile("quotes.csv", b"Item,Cost\nDJ,1500\n"))
        assert handle.result(timeout=10) == "CSV: 1 data rows; columns: Item, Cost; total amount $1,500"
