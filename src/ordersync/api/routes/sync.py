"""Order sync trigger and status routes."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ordersync.channels.client import CommerceProxyClient
from ordersync.config import get_settings
from ordersync.db.engine import get_engine
from ordersync.errors import RegistryError
from ordersync.sync.log_sink import SyncLogSink
from ordersync.sync.orchestrator import OrderSyncOrchestrator
from ordersync.sync.registry import CredentialRegistry
from ordersync.sync.types import Channel, ConnectionTestResult

router = APIRouter()

_client: Optional[CommerceProxyClient] = None


class SyncRunResponse(BaseModel):
    success: bool
    message: str
    results: List[Dict[str, Any]]


class SyncStatusResponse(BaseModel):
    status: str
    message: Optional[str]
    created_at: Optional[datetime]
    details: Optional[List[Any]]


def get_client() -> CommerceProxyClient:
    """One shared proxy client per app; closed in the app lifespan."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = CommerceProxyClient(
            settings.commerce_proxy_url, timeout=settings.http_timeout_seconds
        )
    return _client


async def close_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_log_sink() -> SyncLogSink:
    return SyncLogSink(get_engine())


def get_orchestrator(
    client: CommerceProxyClient = Depends(get_client),
    log_sink: SyncLogSink = Depends(get_log_sink),
) -> OrderSyncOrchestrator:
    return OrderSyncOrchestrator(
        client=client,
        registry=CredentialRegistry(get_engine()),
        log_sink=log_sink,
    )


@router.post("/orders/run", response_model=SyncRunResponse)
async def run_order_sync(orchestrator: OrderSyncOrchestrator = Depends(get_orchestrator)):
    """
    Run one sync pass over every active credential and wait for it.
    Called by the hourly cron or manually from the dashboard.
    """
    try:
        report = await orchestrator.run_pass()
    except RegistryError as exc:
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
    return SyncRunResponse(
        success=True,
        message=report.message,
        results=[o.to_dict() for o in report.outcomes],
    )


@router.get("/orders/status", response_model=SyncStatusResponse)
def order_sync_status(log_sink: SyncLogSink = Depends(get_log_sink)):
    """Return the outcome of the most recent sync pass."""
    entry = log_sink.latest()
    if not entry:
        return SyncStatusResponse(status="never_run", message=None, created_at=None, details=None)
    return SyncStatusResponse(
        status=entry.status,
        message=entry.message,
        created_at=entry.created_at,
        details=entry.details,
    )


@router.post("/channels/{channel}/test", response_model=ConnectionTestResult)
async def test_channel_connection(
    channel: Channel,
    client: CommerceProxyClient = Depends(get_client),
):
    return await client.test_connection(channel)
