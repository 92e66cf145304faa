"""
Client-side auto-sync: a recurring, state-persisting trigger for one channel.

States are Idle and Syncing. A trigger while Syncing is dropped, not
queued. Mutual exclusion comes from an asyncio.Lock owned by the
scheduler; `state.is_syncing` is for display only.

The recurring timer is an APScheduler interval job on the caller's
AsyncIOScheduler. Enabling (or starting while enabled) fires once right
away when the last sync is at least INTERVAL old, then arms the job.
Disabling or close() removes the job; a sync already past the guard is
allowed to finish.
"""
import asyncio
import inspect
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ordersync.autosync.state import AutoSyncState, AutoSyncStateStore
from ordersync.sync.types import LOOKBACK_DAYS, Channel, SyncResult, SyncWindow

logger = logging.getLogger(__name__)

INTERVAL = timedelta(minutes=5)
JOB_ID = "order_auto_sync"

SyncFn = Callable[[Channel, SyncWindow, Optional[str]], Awaitable[SyncResult]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoSyncScheduler:
    def __init__(
        self,
        sync_fn: SyncFn,
        channel: Channel,
        store: AutoSyncStateStore,
        scheduler: AsyncIOScheduler,
        sub_account_id: Optional[str] = None,
        on_complete: Optional[Callable[[], object]] = None,
        clock: Callable[[], datetime] = _utcnow,
        today: Callable[[], date] = date.today,
    ):
        """
        Args:
            sync_fn: single-channel sync operation, e.g.
                CommerceProxyClient.sync_orders_chunked.
            channel: the one channel this scheduler keeps in sync.
            store: durable state backend.
            scheduler: APScheduler instance that owns the interval job.
            on_complete: called (or awaited) after each successful sync.
        """
        self.sync_fn = sync_fn
        self.channel = Channel(channel)
        self.sub_account_id = sub_account_id
        self.store = store
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.clock = clock
        self.today = today

        self.state: AutoSyncState = self._load()
        self.state.is_syncing = False
        self._guard = asyncio.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Apply the recurring rule if auto-sync was left enabled."""
        if self.state.enabled:
            await self._arm()

    def close(self) -> None:
        """Cancel the recurring trigger. Safe to call more than once."""
        self._disarm()

    async def configure(self, enabled: bool) -> None:
        self.state.enabled = enabled
        self._save()
        if enabled:
            await self._arm()
        else:
            self._disarm()

    @property
    def is_armed(self) -> bool:
        return self.scheduler.get_job(JOB_ID) is not None

    # ── Triggering ────────────────────────────────────────────────────────────

    async def trigger_now(self) -> Optional[SyncResult]:
        """
        Sync the last LOOKBACK_DAYS days of the channel once.

        Returns:
            The sync result, or None if another sync was already running.
        """
        if self._guard.locked():
            logger.debug("Auto-sync for %s already running, trigger dropped", self.channel.value)
            return None

        async with self._guard:
            triggered_at = self.clock()
            window = SyncWindow.lookback(self.today(), LOOKBACK_DAYS)
            self.state.is_syncing = True
            try:
                result = await self.sync_fn(self.channel, window, self.sub_account_id)
            except Exception as exc:
                logger.warning("Auto-sync for %s failed: %s", self.channel.value, exc)
                result = SyncResult(success=False, error=f"error: {exc}")
            finally:
                self.state.is_syncing = False

            self.state.last_sync_at = triggered_at
            self.state.last_result = result
            self._save()

        if result.success and self.on_complete is not None:
            try:
                ret = self.on_complete()
                if inspect.isawaitable(ret):
                    await ret
            except Exception as exc:
                logger.warning("Auto-sync completion callback failed: %s", exc)
        return result

    def is_due(self) -> bool:
        last = self.state.last_sync_at
        return last is None or self.clock() - last >= INTERVAL

    # ── Internal helpers ──────────────────────────────────────────────────────

    async def _arm(self) -> None:
        if self.is_due():
            await self.trigger_now()
        # a stopped scheduler keeps duplicate pending jobs despite replace_existing
        self._disarm()
        self.scheduler.add_job(
            self.trigger_now,
            trigger="interval",
            seconds=INTERVAL.total_seconds(),
            id=JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    def _disarm(self) -> None:
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)

    def _load(self) -> AutoSyncState:
        try:
            return self.store.load()
        except Exception as exc:
            logger.warning("Could not load auto-sync state, using defaults: %s", exc)
            return AutoSyncState()

    def _save(self) -> None:
        try:
            self.store.save(self.state)
        except Exception as exc:
            logger.warning("Could not persist auto-sync state: %s", exc)
