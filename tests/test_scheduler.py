import asyncio

from app import scheduler
from app.services import record_store

from conftest import WORKSHOP_ID


def test_configured_workshop_ids(monkeypatch):
    monkeypatch.setenv("ANALYTICS_WORKSHOP_IDS", " ws-1, ,ws-2,")
    assert scheduler.configured_workshop_ids() == ["ws-1", "ws-2"]


def test_scheduler_not_started_without_workshops(monkeypatch):
    monkeypatch.delenv("ANALYTICS_WORKSHOP_IDS", raising=False)
    scheduler.start_scheduler()
    assert not scheduler.scheduler.running


def test_scheduled_refresh_warms_cache(monkeypatch, store):
    monkeypatch.setenv("ANALYTICS_WORKSHOP_IDS", f"{WORKSHOP_ID},missing")
    monkeypatch.setattr(scheduler, "get_record_store", lambda: store)

    asyncio.run(scheduler.scheduled_snapshot_refresh())

    assert WORKSHOP_ID in record_store._snapshot_cache
    assert len(record_store._snapshot_cache[WORKSHOP_ID].jobs) == 2


def test_refresh_settings_read_at_use(monkeypatch):
    monkeypatch.setenv("SNAPSHOT_REFRESH_ENABLED", "false")
    monkeypatch.setenv("SNAPSHOT_REFRESH_MINUTES", "3")
    assert not scheduler.refresh_enabled()
    assert scheduler.refresh_interval_minutes() == 3

    monkeypatch.setenv("ANALYTICS_WORKSHOP_IDS", WORKSHOP_ID)
    scheduler.start_scheduler()
    assert not scheduler.scheduler.running
