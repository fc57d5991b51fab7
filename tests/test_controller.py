"""Tests for the dashboard controller's aggregation cycle."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional
import httpx
import pytest
from admin_dashboard.config import Settings
from admin_dashboard.controller import ERROR_MESSAGE, DashboardController, build_controller
from admin_dashboard.schemas import MessageRecord
from admin_dashboard.sources import (
    DataSource,
    DataSourceError,
    SQLiteDataSource,
    SupabaseDataSource,
    UnconfiguredDataSource,
)
from conftest import make_record

NOW = datetime(2026, 10, 18, 15, 30)


class FakeSource(DataSource):
    """In-memory source; the first fetch can be held open with ``gate``."""

    name = "fake"

    def __init__(self, records=(), user_total=0, hold_first=False):
        self.records: List[MessageRecord] = list(records)
        self.user_total = user_total
        self.error: Optional[Exception] = None
        self.first_error: Optional[Exception] = None
        self.hold_first = hold_first
        self.gate = asyncio.Event()
        self.fetch_calls = 0
        self.count_calls = 0
        self.closed = False

    async def fetch_messages(self):
        self.fetch_calls += 1
        call = self.fetch_calls
        snapshot = list(self.records)
        if self.hold_first and call == 1:
            await self.gate.wait()
            if self.first_error:
                raise self.first_error
        if self.error:
            raise self.error
        return snapshot

    async def count_users(self):
        self.count_calls += 1
        return self.user_total

    async def ping(self):
        return True

    async def close(self):
        self.closed = True


def controller_for(source: DataSource) -> DashboardController:
    return DashboardController(source, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_refresh_publishes_view():
    source = FakeSource(
        [
            make_record(NOW - timedelta(hours=1), "a@x.com", "m1"),
            make_record(NOW - timedelta(hours=2), "a@x.com", "m2"),
            make_record(NOW - timedelta(days=3), None, "m3"),
        ],
        user_total=5,
    )
    controller = controller_for(source)
    assert controller.started is False

    view = await controller.refresh()

    assert controller.started is True
    assert controller.view is view
    assert view.loading is False
    assert view.error is None
    assert view.generated_at == NOW
    assert view.stats.total_messages == 3
    assert view.stats.total_users == 5
    assert view.stats.messages_today == 2
    assert view.stats.active_users_today == 1
    assert len(view.daily_stats) == 7
    assert [m.id for m in view.messages] == ["m1", "m2", "m3"]
    assert view.messages[2].email == "Unknown"
    assert view.messages[0].created_at == "10/18/2026, 2:30:00 PM"


@pytest.mark.asyncio
async def test_each_refresh_refetches_everything():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1)
    controller = controller_for(source)

    await controller.refresh()
    source.records.append(make_record(NOW, "b@x.com", "m2"))
    source.user_total = 2
    view = await controller.refresh()

    assert source.fetch_calls == 2
    assert source.count_calls == 2
    assert view.stats.total_messages == 2
    assert view.stats.total_users == 2
    assert controller.generation == 2


@pytest.mark.asyncio
async def test_refresh_is_idempotent_for_same_inputs():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1)
    controller = controller_for(source)

    first = await controller.refresh()
    second = await controller.refresh()

    assert first == second


@pytest.mark.asyncio
async def test_failure_sets_error_and_keeps_previous_stats(caplog):
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1)
    controller = controller_for(source)
    before = await controller.refresh()

    source.records.append(make_record(NOW, "b@x.com", "m2"))
    source.error = DataSourceError("connection refused")
    with caplog.at_level(logging.ERROR, logger="admin_dashboard.controller"):
        view = await controller.refresh()

    assert view.error == ERROR_MESSAGE == "Failed to load dashboard data. Please try again."
    assert view.loading is False
    assert view.stats == before.stats
    assert view.messages == before.messages
    assert any(r.exc_info and isinstance(r.exc_info[1], DataSourceError) for r in caplog.records)


@pytest.mark.asyncio
async def test_failure_skips_user_count():
    source = FakeSource()
    source.error = DataSourceError("rejected")
    controller = controller_for(source)

    view = await controller.refresh()

    assert source.count_calls == 0
    assert view.error == ERROR_MESSAGE
    assert view.stats.total_messages == 0
    assert view.daily_stats == []


@pytest.mark.asyncio
async def test_successful_refresh_clears_error():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1)
    source.error = DataSourceError("down")
    controller = controller_for(source)
    assert (await controller.refresh()).error == ERROR_MESSAGE

    source.error = None
    view = await controller.refresh()

    assert view.error is None
    assert view.stats.total_messages == 1


@pytest.mark.asyncio
async def test_overlapping_refresh_publishes_latest_cycle():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1, hold_first=True)
    controller = controller_for(source)

    first = asyncio.create_task(controller.refresh())
    await asyncio.sleep(0)
    assert controller.view.loading is True

    source.records.append(make_record(NOW, "b@x.com", "m2"))
    latest = await controller.refresh()
    assert latest.stats.total_messages == 2
    assert latest.loading is False

    source.gate.set()
    stale = await first

    assert stale is controller.view
    assert controller.view.stats.total_messages == 2
    assert controller.view.loading is False
    assert controller.generation == 2


@pytest.mark.asyncio
async def test_superseded_failure_does_not_show_error():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1, hold_first=True)
    source.first_error = DataSourceError("timed out")
    controller = controller_for(source)

    first = asyncio.create_task(controller.refresh())
    await asyncio.sleep(0)
    await controller.refresh()
    source.gate.set()
    await first

    assert controller.view.error is None
    assert controller.view.stats.total_messages == 1


@pytest.mark.asyncio
async def test_now_captured_once_per_cycle():
    calls = []

    def clock():
        calls.append(1)
        return NOW

    controller = DashboardController(FakeSource(), clock=clock)
    await controller.refresh()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_close_releases_source():
    source = FakeSource()
    controller = controller_for(source)
    await controller.close()
    assert source.closed is True


def test_build_controller_with_timezone(test_db):
    controller = build_controller(
        Settings(data_source="sqlite", database_url=f"sqlite:///{test_db}", dashboard_timezone="UTC")
    )
    assert isinstance(controller.source, SQLiteDataSource)
    assert str(controller.tz) == "UTC"


def test_build_controller_without_timezone(test_db):
    controller = build_controller(Settings(data_source="sqlite", database_url=f"sqlite:///{test_db}"))
    assert controller.tz is None


@pytest.mark.asyncio
async def test_malformed_hosted_response_shows_banner():
    """A list of non-objects is a data source failure, not a crash."""
    source = SupabaseDataSource(
        "https://project.supabase.co",
        "anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["oops"])),
    )
    controller = controller_for(source)

    view = await controller.refresh()

    assert view.error == ERROR_MESSAGE
    assert view.loading is False
    assert controller.view.loading is False


@pytest.mark.asyncio
async def test_unexpected_source_exception_shows_banner():
    source = FakeSource([make_record(NOW, "a@x.com", "m1")], user_total=1)
    controller = controller_for(source)
    before = await controller.refresh()

    source.error = RuntimeError("driver bug")
    view = await controller.refresh()

    assert view.error == ERROR_MESSAGE
    assert view.loading is False
    assert view.stats == before.stats


@pytest.mark.asyncio
async def test_unconfigured_hosted_source_shows_banner():
    controller = build_controller(Settings(data_source="supabase", supabase_url=None, supabase_key=None))
    assert isinstance(controller.source, UnconfiguredDataSource)

    view = await controller.refresh()

    assert view.error == ERROR_MESSAGE
    assert view.loading is False
