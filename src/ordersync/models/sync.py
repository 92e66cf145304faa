"""Credential registry and sync audit log tables."""
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApiCredential(SQLModel, table=True):
    """One marketplace credential. Owned by the settings UI, read-only here."""

    __tablename__ = "api_credentials"

    id: Optional[int] = Field(default=None, primary_key=True)
    channel: str = Field(index=True)  # "naver_smartstore", "cafe24", "coupang"
    brand_id: Optional[str] = None
    is_active: bool = Field(default=True, index=True)


class SyncLogEntry(SQLModel, table=True):
    """One row per orchestrator pass."""

    __tablename__ = "api_sync_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    action: str
    status: str  # "success", "partial"
    message: str
    details: List[Any] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=_utcnow)
