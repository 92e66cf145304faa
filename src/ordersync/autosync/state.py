"""
Persisted auto-sync state behind a small storage abstraction.

Only {lastSyncAt, enabled} is durable. `is_syncing` and `last_result`
live for one session: a fresh load always starts idle. Storage failures
never reach the scheduler; a missing or unreadable record loads as
enabled with no previous sync, so auto-sync fails open.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ordersync.sync.types import SyncResult

logger = logging.getLogger(__name__)

STORAGE_KEY = "order_auto_sync"


@dataclass
class AutoSyncState:
    enabled: bool = True
    last_sync_at: Optional[datetime] = None
    last_result: Optional[SyncResult] = None
    is_syncing: bool = False


class PersistedAutoSync(BaseModel):
    """Wire form of the durable part of AutoSyncState."""

    model_config = ConfigDict(populate_by_name=True)

    last_sync_at: Optional[datetime] = Field(default=None, alias="lastSyncAt")
    enabled: bool = True

    @classmethod
    def from_state(cls, state: AutoSyncState) -> "PersistedAutoSync":
        return cls(last_sync_at=state.last_sync_at, enabled=state.enabled)

    def to_state(self) -> AutoSyncState:
        last = self.last_sync_at
        if last is not None and last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return AutoSyncState(enabled=self.enabled, last_sync_at=last)


class AutoSyncStateStore(Protocol):
    def load(self) -> AutoSyncState: ...

    def save(self, state: AutoSyncState) -> None: ...


class MemoryStateStore:
    """Keeps the serialized record in memory. Useful for tests and one-shot runs."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw

    def load(self) -> AutoSyncState:
        if not self.raw:
            return AutoSyncState()
        try:
            return PersistedAutoSync.model_validate_json(self.raw).to_state()
        except ValidationError:
            return AutoSyncState()

    def save(self, state: AutoSyncState) -> None:
        self.raw = PersistedAutoSync.from_state(state).model_dump_json(by_alias=True)


class JsonFileStateStore:
    """One JSON file named after STORAGE_KEY inside `state_dir`."""

    def __init__(self, state_dir: Path):
        self._state_dir = Path(state_dir).expanduser()
        self._state_file = self._state_dir / f"{STORAGE_KEY}.json"

    @property
    def path(self) -> Path:
        return self._state_file

    def load(self) -> AutoSyncState:
        try:
            raw = self._state_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return AutoSyncState()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read auto-sync state %s: %s", self._state_file, exc)
            return AutoSyncState()

        try:
            return PersistedAutoSync.model_validate_json(raw).to_state()
        except ValidationError:
            logger.warning("Ignoring corrupt auto-sync state in %s", self._state_file)
            return AutoSyncState()

    def save(self, state: AutoSyncState) -> None:
        record = PersistedAutoSync.from_state(state)
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            self._state_file.write_text(record.model_dump_json(by_alias=True), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save auto-sync state %s: %s", self._state_file, exc)
