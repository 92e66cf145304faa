"""
Value types shared by the orchestrator, the adapter client and the
auto-sync scheduler.

SyncWindow and ChannelTarget are built fresh for every pass. SyncOutcome
and SyncReport are write-once: frozen dataclasses with derived counters.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

LOOKBACK_DAYS = 3
DATE_FORMAT = "%Y-%m-%d"


class Channel(str, Enum):
    """Canonical channel identifiers understood by the adapter endpoint."""

    SMARTSTORE = "smartstore"
    STOREFRONT = "cafe24"
    MARKETPLACE = "coupang"


@dataclass(frozen=True)
class SyncWindow:
    """Inclusive date-only range re-scanned by one sync call."""

    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )

    @classmethod
    def lookback(cls, today: date, days: int = LOOKBACK_DAYS) -> "SyncWindow":
        """[today - days, today]."""
        return cls(start_date=today - timedelta(days=days), end_date=today)

    def as_params(self) -> Dict[str, str]:
        return {
            "startDate": self.start_date.strftime(DATE_FORMAT),
            "endDate": self.end_date.strftime(DATE_FORMAT),
        }

    def label(self) -> str:
        params = self.as_params()
        return f"{params['startDate']} ~ {params['endDate']}"

    def chunks(self, days: int) -> List["SyncWindow"]:
        """Split into consecutive sub-windows of at most `days` days each."""
        if days < 1:
            raise ValueError("chunk size must be at least one day")
        result = []
        cur = self.start_date
        while cur <= self.end_date:
            chunk_end = min(cur + timedelta(days=days - 1), self.end_date)
            result.append(SyncWindow(start_date=cur, end_date=chunk_end))
            cur = chunk_end + timedelta(days=1)
        return result


@dataclass(frozen=True)
class ChannelTarget:
    """One (channel, sub-account) sync unit. None means the default account."""

    channel: Channel
    sub_account_id: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.channel.value} (sub-account: {self.sub_account_id or 'default'})"


@dataclass(frozen=True)
class SyncOutcome:
    target: ChannelTarget
    success: bool
    message: str
    synced_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form stored in the audit log details column."""
        data: Dict[str, Any] = {
            "channel": self.target.channel.value,
            "success": self.success,
            "message": self.message,
        }
        if self.target.sub_account_id is not None:
            data["brandId"] = self.target.sub_account_id
        if self.synced_count is not None:
            data["synced"] = self.synced_count
        return data


@dataclass(frozen=True)
class SyncReport:
    """Aggregate of one pass. Counters are folded from `outcomes` on access."""

    outcomes: Tuple[SyncOutcome, ...] = field(default_factory=tuple)
    message: str = ""

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def fail_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def total_synced(self) -> int:
        # Failed outcomes and outcomes without a count contribute 0
        return sum(o.synced_count or 0 for o in self.outcomes if o.success)

    @property
    def status(self) -> str:
        return "success" if self.fail_count == 0 else "partial"

    def summary(self) -> str:
        return (
            f"{self.success_count} succeeded, {self.fail_count} failed, "
            f"{self.total_synced} orders synced"
        )

    @classmethod
    def from_outcomes(cls, outcomes) -> "SyncReport":
        """Freeze outcomes and attach the summary message."""
        outcomes = tuple(outcomes)
        return cls(outcomes=outcomes, message=cls(outcomes=outcomes).summary())


class SyncResult(BaseModel):
    """Response body of a `sync-orders` adapter call."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: Optional[str] = None
    error: Optional[str] = None
    synced: Optional[int] = None
    skipped: Optional[int] = None
    total: Optional[int] = None
    errors: Optional[List[str]] = None


class ConnectionTestResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: str = ""
    data: Optional[Any] = None


@dataclass(frozen=True)
class SyncProgress:
    """Progress report for chunked syncs (1-based chunk index)."""

    current: int
    total: int
    synced_so_far: int
    date_range: str
    chunk_result: Optional[SyncResult] = None
