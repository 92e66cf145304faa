"""
Async client for the commerce proxy endpoint.

Every marketplace is reached through one POST endpoint that dispatches on
`action` and `channel`; request signing and order upserts happen behind it.
This client only speaks the wire contract:

    request:  {action: "sync-orders", channel, startDate, endDate, brandId?}
    response: {success, message?, error?, synced?, skipped?, total?, errors?}

Non-2xx responses raise AdapterHTTPError (body truncated), httpx transport
failures raise AdapterTransportError. A well-formed `success: false` body is
returned as-is so the caller can treat it as a soft failure.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ordersync.channels.mapping import chunk_days_for
from ordersync.errors import AdapterConfigError, AdapterHTTPError, AdapterTransportError
from ordersync.sync.types import (
    Channel,
    ConnectionTestResult,
    SyncProgress,
    SyncResult,
    SyncWindow,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class CommerceProxyClient:
    """
    Thin async wrapper over httpx.AsyncClient for the commerce proxy.

    The httpx client may be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created and closed by aclose().
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "CommerceProxyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.base_url:
            raise AdapterConfigError("commerce proxy URL is not configured")
        try:
            resp = await self._http.post(self.base_url, json=payload)
        except httpx.HTTPError as exc:
            raise AdapterTransportError(str(exc) or type(exc).__name__) from exc

        if not resp.is_success:
            raise AdapterHTTPError(resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as exc:
            raise AdapterTransportError(f"invalid JSON response: {exc}") from exc

    async def sync_orders(
        self,
        channel: Channel,
        window: SyncWindow,
        sub_account_id: Optional[str] = None,
    ) -> SyncResult:
        """Run one `sync-orders` call for the whole window."""
        payload: Dict[str, Any] = {
            "action": "sync-orders",
            "channel": Channel(channel).value,
            **window.as_params(),
        }
        if sub_account_id:
            payload["brandId"] = sub_account_id

        data = await self._post(payload)
        return SyncResult.model_validate(data)

    async def sync_orders_chunked(
        self,
        channel: Channel,
        window: SyncWindow,
        sub_account_id: Optional[str] = None,
        on_progress: Optional[Callable[[SyncProgress], None]] = None,
    ) -> SyncResult:
        """
        Sync a window in per-channel chunks, one call per chunk, in order.

        Stops at the first chunk that reports failure; the returned result
        then carries the counts accumulated so far.

        Raises:
            AdapterHTTPError / AdapterTransportError from any chunk.
        """
        chunks = window.chunks(chunk_days_for(Channel(channel)))
        if len(chunks) == 1:
            if on_progress:
                on_progress(SyncProgress(1, 1, 0, chunks[0].label()))
            return await self.sync_orders(channel, chunks[0], sub_account_id)

        total_synced = 0
        total_skipped = 0
        all_errors: List[str] = []

        for i, chunk in enumerate(chunks, start=1):
            date_range = chunk.label()
            if on_progress:
                on_progress(SyncProgress(i, len(chunks), total_synced, date_range))

            result = await self.sync_orders(channel, chunk, sub_account_id)
            if not result.success:
                return SyncResult(
                    success=False,
                    error=f"{date_range} failed: {result.error or result.message or 'sync failed'}",
                    synced=total_synced,
                    skipped=total_skipped,
                    errors=all_errors,
                )

            total_synced += result.synced or 0
            total_skipped += result.skipped or 0
            all_errors.extend(result.errors or [])

            if on_progress:
                on_progress(
                    SyncProgress(i, len(chunks), total_synced, date_range, result)
                )

        logger.debug("Chunked sync of %s: %d chunks, %d synced",
                     Channel(channel).value, len(chunks), total_synced)
        return SyncResult(
            success=True,
            message=f"{total_synced} orders synced",
            synced=total_synced,
            skipped=total_skipped,
            total=total_synced + total_skipped,
            errors=all_errors or None,
        )

    async def test_connection(self, channel: Channel) -> ConnectionTestResult:
        """Ask the proxy to validate a channel's credentials. Never raises."""
        try:
            data = await self._post(
                {"action": "test-connection", "channel": Channel(channel).value}
            )
        except AdapterHTTPError as exc:
            return ConnectionTestResult(success=False, message=f"server error: {exc.status_code}")
        except (AdapterTransportError, AdapterConfigError) as exc:
            return ConnectionTestResult(success=False, message=f"connection failed: {exc}")
        try:
            return ConnectionTestResult.model_validate(data)
        except ValidationError:
            return ConnectionTestResult(success=False, message="unexpected response from proxy")
