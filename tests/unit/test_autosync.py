"""Tests for the client-side AutoSyncScheduler."""
import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ordersync.autosync.runner import build_auto_sync
from ordersync.autosync.scheduler import INTERVAL, JOB_ID, AutoSyncScheduler
from ordersync.autosync.state import AutoSyncState, JsonFileStateStore, MemoryStateStore
from ordersync.sync.types import Channel, SyncResult, SyncWindow

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
TODAY = date(2026, 10, 19)


class CountingSync:
    """Stub sync operation: counts calls and yields once to the event loop."""

    def __init__(self, result=None, exc=None):
        self.calls = []
        self.result = result or SyncResult(success=True, synced=2)
        self.exc = exc
        self.seen_syncing = None
        self.owner = None

    async def __call__(self, channel, window, sub_account_id=None):
        self.calls.append((channel, window, sub_account_id))
        if self.owner is not None:
            self.seen_syncing = self.owner.state.is_syncing
        await asyncio.sleep(0)
        if self.exc:
            raise self.exc
        return self.result


def make_auto_sync(sync=None, store=None, on_complete=None, now=NOW):
    sync = sync or CountingSync()
    auto = AutoSyncScheduler(
        sync_fn=sync,
        channel=Channel.SMARTSTORE,
        store=store or MemoryStateStore(),
        scheduler=AsyncIOScheduler(),
        on_complete=on_complete,
        clock=lambda: now,
        today=lambda: TODAY,
    )
    sync.owner = auto
    return auto, sync


def stored(state):
    store = MemoryStateStore()
    store.save(state)
    return store


# ─── trigger_now ──────────────────────────────────────────────────────────────

class TestTriggerNow:
    @pytest.mark.asyncio
    async def test_overlapping_triggers_run_once(self):
        auto, sync = make_auto_sync()
        first, second = await asyncio.gather(auto.trigger_now(), auto.trigger_now())
        assert len(sync.calls) == 1
        assert first.success is True
        assert second is None

    @pytest.mark.asyncio
    async def test_guard_released_after_completion(self):
        auto, sync = make_auto_sync()
        await auto.trigger_now()
        await auto.trigger_now()
        assert len(sync.calls) == 2

    @pytest.mark.asyncio
    async def test_guard_released_after_failure(self):
        auto, sync = make_auto_sync(CountingSync(exc=ConnectionError("reset")))
        result = await auto.trigger_now()
        assert result.success is False
        assert result.error == "error: reset"
        await auto.trigger_now()
        assert len(sync.calls) == 2
        assert auto.state.is_syncing is False

    @pytest.mark.asyncio
    async def test_syncs_fixed_channel_and_three_day_window(self):
        auto, sync = make_auto_sync()
        await auto.trigger_now()
        channel, window, sub = sync.calls[0]
        assert channel is Channel.SMARTSTORE
        assert window == SyncWindow(date(2026, 10, 16), TODAY)
        assert sub is None

    @pytest.mark.asyncio
    async def test_is_syncing_during_call_only(self):
        auto, sync = make_auto_sync()
        await auto.trigger_now()
        assert sync.seen_syncing is True
        assert auto.state.is_syncing is False

    @pytest.mark.asyncio
    async def test_records_trigger_time_and_result(self):
        store = MemoryStateStore()
        auto, _ = make_auto_sync(store=store)
        result = await auto.trigger_now()
        assert auto.state.last_sync_at == NOW
        assert auto.state.last_result == result
        assert store.load().last_sync_at == NOW

    @pytest.mark.asyncio
    async def test_last_result_reflects_latest_trigger_only(self):
        sync = CountingSync(result=SyncResult(success=False, error="quota"))
        auto, _ = make_auto_sync(sync)
        await auto.trigger_now()
        sync.result = SyncResult(success=True, synced=1)
        await auto.trigger_now()
        assert auto.state.last_result.success is True

    @pytest.mark.asyncio
    async def test_on_complete_only_on_success(self):
        on_complete = MagicMock()
        sync = CountingSync(result=SyncResult(success=False, error="quota"))
        auto, _ = make_auto_sync(sync, on_complete=on_complete)

        await auto.trigger_now()
        on_complete.assert_not_called()

        sync.result = SyncResult(success=True)
        await auto.trigger_now()
        on_complete.assert_called_once()

    @pytest.mark.asyncio
    async def test_async_on_complete_awaited(self):
        on_complete = AsyncMock()
        auto, _ = make_auto_sync(on_complete=on_complete)
        await auto.trigger_now()
        on_complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_break_trigger(self):
        store = MagicMock()
        store.load.return_value = AutoSyncState()
        store.save.side_effect = OSError("quota exceeded")
        auto, _ = make_auto_sync(store=store)
        result = await auto.trigger_now()
        assert result.success is True
        assert auto.state.last_sync_at == NOW


# ─── Recurring behaviour ──────────────────────────────────────────────────────

class TestRecurring:
    @pytest.mark.asyncio
    async def test_never_synced_fires_once_on_start(self):
        auto, sync = make_auto_sync()
        await auto.start()
        assert len(sync.calls) == 1
        assert auto.is_armed

    @pytest.mark.asyncio
    async def test_recent_sync_does_not_fire_on_start(self):
        store = stored(AutoSyncState(enabled=True, last_sync_at=NOW - timedelta(minutes=2)))
        auto, sync = make_auto_sync(store=store)
        await auto.start()
        assert sync.calls == []
        assert auto.is_armed

    @pytest.mark.asyncio
    async def test_stale_sync_fires_on_start(self):
        store = stored(AutoSyncState(enabled=True, last_sync_at=NOW - INTERVAL))
        auto, sync = make_auto_sync(store=store)
        await auto.start()
        assert len(sync.calls) == 1

    @pytest.mark.asyncio
    async def test_disabled_at_startup_stays_idle(self):
        auto, sync = make_auto_sync(store=stored(AutoSyncState(enabled=False)))
        await auto.start()
        assert sync.calls == []
        assert not auto.is_armed

    @pytest.mark.asyncio
    async def test_interval_job_every_five_minutes(self):
        auto, _ = make_auto_sync()
        await auto.start()
        jobs = auto.scheduler.get_jobs()
        assert [j.id for j in jobs] == [JOB_ID]
        assert jobs[0].trigger.interval == timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_disable_cancels_timer_and_persists(self):
        store = MemoryStateStore()
        auto, _ = make_auto_sync(store=store)
        await auto.start()

        await auto.configure(False)

        assert not auto.is_armed
        assert store.load().enabled is False

    @pytest.mark.asyncio
    async def test_reenable_within_interval_does_not_refire(self):
        auto, sync = make_auto_sync()
        await auto.start()
        await auto.configure(False)
        await auto.configure(True)
        assert len(sync.calls) == 1
        assert len(auto.scheduler.get_jobs()) == 1

    @pytest.mark.asyncio
    async def test_enable_after_interval_fires(self):
        store = stored(AutoSyncState(enabled=False, last_sync_at=NOW - timedelta(hours=1)))
        auto, sync = make_auto_sync(store=store)
        await auto.configure(True)
        assert len(sync.calls) == 1
        assert store.load().enabled is True

    @pytest.mark.asyncio
    async def test_close_cancels_timer(self):
        auto, _ = make_auto_sync()
        await auto.start()
        auto.close()
        auto.close()
        assert auto.scheduler.get_jobs() == []

    @pytest.mark.asyncio
    async def test_manual_trigger_ignores_timer_state(self):
        auto, sync = make_auto_sync(store=stored(AutoSyncState(enabled=False)))
        await auto.trigger_now()
        assert len(sync.calls) == 1
        assert not auto.is_armed

    def test_failing_store_load_uses_defaults(self):
        store = MagicMock()
        store.load.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        auto, _ = make_auto_sync(store=store)
        assert auto.state.enabled is True
        assert auto.state.last_sync_at is None

    @pytest.mark.asyncio
    async def test_failing_callback_still_arms_timer(self):
        on_complete = MagicMock(side_effect=RuntimeError("ui refresh failed"))
        auto, sync = make_auto_sync(on_complete=on_complete)
        await auto.start()
        assert len(sync.calls) == 1
        on_complete.assert_called_once()
        assert auto.is_armed
        assert auto.state.last_result.success is True

    def test_is_syncing_reset_on_load(self):
        store = MagicMock()
        store.load.return_value = AutoSyncState(is_syncing=True)
        auto, _ = make_auto_sync(store=store)
        assert auto.state.is_syncing is False


# ─── Wiring from settings ─────────────────────────────────────────────────────

class TestBuildAutoSync:
    def test_uses_chunked_proxy_sync_and_file_store(self, tmp_path):
        client = MagicMock()
        with patch("ordersync.autosync.runner.get_settings") as mock_settings:
            mock_settings.return_value.auto_sync_channel = "cafe24"
            mock_settings.return_value.auto_sync_sub_account_id = "B2"
            mock_settings.return_value.auto_sync_state_dir = tmp_path
            auto = build_auto_sync(client, AsyncIOScheduler())

        assert auto.channel is Channel.STOREFRONT
        assert auto.sub_account_id == "B2"
        assert auto.sync_fn is client.sync_orders_chunked
        assert isinstance(auto.store, JsonFileStateStore)
        assert auto.store.path.parent == tmp_path
