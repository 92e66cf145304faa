"""
Main entrypoint for the order sync service.

Usage:
    python -m ordersync             # hourly sync scheduler
    python -m ordersync pass        # run one sync pass and exit
    python -m ordersync autosync    # client-side auto-sync loop
    uvicorn ordersync.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _run_pass() -> int:
    from ordersync.channels.client import CommerceProxyClient
    from ordersync.config import get_settings
    from ordersync.db.engine import get_engine
    from ordersync.errors import RegistryError
    from ordersync.sync.log_sink import SyncLogSink
    from ordersync.sync.orchestrator import OrderSyncOrchestrator
    from ordersync.sync.registry import CredentialRegistry

    settings = get_settings()
    engine = get_engine()

    async with CommerceProxyClient(
        settings.commerce_proxy_url, timeout=settings.http_timeout_seconds
    ) as client:
        orchestrator = OrderSyncOrchestrator(
            client=client,
            registry=CredentialRegistry(engine),
            log_sink=SyncLogSink(engine),
        )
        try:
            report = await orchestrator.run_pass()
        except RegistryError as exc:
            logger.error("Sync pass aborted: %s", exc)
            return 1

    for outcome in report.outcomes:
        print(f"{'OK  ' if outcome.success else 'FAIL'} {outcome.target.label}: {outcome.message}")
    print(report.message)
    return 0


async def _run_scheduler() -> None:
    from ordersync.config import get_settings
    from ordersync.db.engine import get_engine
    from ordersync.scheduler.jobs import build_scheduler

    settings = get_settings()
    if not settings.commerce_proxy_url:
        logger.error("COMMERCE_PROXY_URL is not set.")
        sys.exit(1)

    scheduler = build_scheduler(get_engine())
    scheduler.start()
    logger.info(
        "Scheduler started (order sync every hour at :%02d)",
        settings.order_sync_minute,
    )

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()
        logger.info("Goodbye.")


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else ""
    if command == "pass":
        sys.exit(asyncio.run(_run_pass()))
    elif command == "autosync":
        from ordersync.autosync.runner import run_auto_sync
        asyncio.run(run_auto_sync())
    else:
        asyncio.run(_run_scheduler())
