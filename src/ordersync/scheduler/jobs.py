"""
APScheduler jobs for the server-side order sync.

Runs one orchestrator pass at the top of every hour. Re-running within the
same hour is harmless: the proxy upserts orders, so a repeated window does
not double-count.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ordersync.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(engine) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: SQLAlchemy engine for the credential registry and log sink.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _scheduled_order_sync,
        trigger="cron",
        minute=settings.order_sync_minute,
        id="scheduled_order_sync",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        kwargs={"engine": engine},
    )

    return scheduler


async def _scheduled_order_sync(engine) -> None:
    """Hourly job: one sync pass over every active credential."""
    from ordersync.channels.client import CommerceProxyClient
    from ordersync.sync.log_sink import SyncLogSink
    from ordersync.sync.orchestrator import OrderSyncOrchestrator
    from ordersync.sync.registry import CredentialRegistry

    settings = get_settings()
    logger.info("Scheduled order sync starting")

    try:
        async with CommerceProxyClient(
            settings.commerce_proxy_url, timeout=settings.http_timeout_seconds
        ) as client:
            orchestrator = OrderSyncOrchestrator(
                client=client,
                registry=CredentialRegistry(engine),
                log_sink=SyncLogSink(engine),
            )
            report = await orchestrator.run_pass()
        logger.info("Scheduled order sync finished: %s", report.message)

    except Exception as exc:
        logger.error("Scheduled order sync failed: %s", exc)
