"""Wires an AutoSyncScheduler to the commerce proxy from settings."""
import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ordersync.autosync.scheduler import AutoSyncScheduler
from ordersync.autosync.state import JsonFileStateStore
from ordersync.channels.client import CommerceProxyClient
from ordersync.config import get_settings
from ordersync.sync.types import Channel

logger = logging.getLogger(__name__)


def build_auto_sync(client: CommerceProxyClient, scheduler: AsyncIOScheduler) -> AutoSyncScheduler:
    settings = get_settings()
    return AutoSyncScheduler(
        sync_fn=client.sync_orders_chunked,
        channel=Channel(settings.auto_sync_channel),
        sub_account_id=settings.auto_sync_sub_account_id,
        store=JsonFileStateStore(settings.auto_sync_state_dir),
        scheduler=scheduler,
    )


async def run_auto_sync() -> None:
    """Run the auto-sync loop until cancelled."""
    settings = get_settings()
    scheduler = AsyncIOScheduler()
    async with CommerceProxyClient(
        settings.commerce_proxy_url, timeout=settings.http_timeout_seconds
    ) as client:
        auto_sync = build_auto_sync(client, scheduler)
        scheduler.start()
        logger.info(
            "Auto-sync for %s (%s)",
            auto_sync.channel.value,
            "enabled" if auto_sync.state.enabled else "disabled",
        )
        try:
            await auto_sync.start()
            await asyncio.Event().wait()
        finally:
            auto_sync.close()
            scheduler.shutdown(wait=False)
