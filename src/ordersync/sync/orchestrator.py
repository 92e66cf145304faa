"""
OrderSyncOrchestrator — one sync pass across every active channel target.

Flow for a pass:
  1. Read active (channel, sub-account) targets from the credential registry
  2. For each target, in registry order and strictly one at a time:
     compute the 3-day lookback window and call the adapter
  3. Convert every adapter failure into a failed SyncOutcome
  4. Write one audit log row (best effort)

Only a registry failure aborts the pass. Targets are never synced
concurrently: marketplace APIs rate-limit per credential and parallel calls
against one sub-account contend for its access token.
"""
import logging
from datetime import date
from typing import Callable, List

from ordersync.errors import AdapterHTTPError
from ordersync.sync.types import (
    LOOKBACK_DAYS,
    ChannelTarget,
    SyncOutcome,
    SyncReport,
    SyncWindow,
)

logger = logging.getLogger(__name__)

PASS_ACTION = "scheduled-order-sync"
NO_TARGETS_MESSAGE = "no active credentials"
DEFAULT_SUCCESS_MESSAGE = "sync complete"
DEFAULT_FAILURE_MESSAGE = "sync failed"
TRANSPORT_ERROR_PREFIX = "error: "


class OrderSyncOrchestrator:
    """Drives sync passes over the credential registry."""

    def __init__(self, client, registry, log_sink=None, today: Callable[[], date] = date.today):
        """
        Args:
            client: CommerceProxyClient (or AsyncMock in tests).
            registry: CredentialRegistry.
            log_sink: SyncLogSink, or None to skip the audit row.
            today: local-date provider used for the lookback window.
        """
        self.client = client
        self.registry = registry
        self.log_sink = log_sink
        self.today = today

    async def run_pass(self) -> SyncReport:
        """
        Sync every active target once.

        Raises:
            RegistryError: credential lookup failed; nothing is persisted.
        """
        targets = self.registry.active_targets()
        if not targets:
            logger.info("No active credentials, nothing to sync")
            return SyncReport(outcomes=(), message=NO_TARGETS_MESSAGE)

        logger.info("Starting order sync pass over %d targets", len(targets))

        outcomes: List[SyncOutcome] = []
        for target in targets:
            window = SyncWindow.lookback(self.today(), LOOKBACK_DAYS)
            outcome = await self.sync_target(target, window)
            outcomes.append(outcome)

        report = SyncReport.from_outcomes(outcomes)

        if self.log_sink is not None:
            try:
                self.log_sink.write(report, action=PASS_ACTION)
            except Exception as exc:
                logger.warning("Could not write sync log: %s", exc)

        logger.info("Order sync pass done: %s", report.message)
        return report

    async def sync_target(self, target: ChannelTarget, window: SyncWindow) -> SyncOutcome:
        """Sync one target. Never raises; failures become failed outcomes."""
        try:
            result = await self.client.sync_orders(
                target.channel, window, target.sub_account_id
            )
        except AdapterHTTPError as exc:
            outcome = SyncOutcome(
                target, success=False,
                message=f"HTTP {exc.status_code}: {exc.body}",
            )
        except Exception as exc:
            outcome = SyncOutcome(
                target, success=False,
                message=f"{TRANSPORT_ERROR_PREFIX}{exc}",
            )
        else:
            if result.success:
                outcome = SyncOutcome(
                    target, success=True,
                    message=result.message or DEFAULT_SUCCESS_MESSAGE,
                    synced_count=result.synced,
                )
            else:
                outcome = SyncOutcome(
                    target, success=False,
                    message=result.error or result.message or DEFAULT_FAILURE_MESSAGE,
                )

        logger.info(
            "%s %s: %s - %s",
            target.label, window.label(),
            "OK" if outcome.success else "FAIL", outcome.message,
        )
        return outcome
