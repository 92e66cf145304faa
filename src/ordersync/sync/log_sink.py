"""Append-only audit log of orchestrator passes."""
from typing import Optional

from sqlmodel import Session, select

from ordersync.models.sync import SyncLogEntry
from ordersync.sync.types import SyncReport


class SyncLogSink:
    def __init__(self, engine):
        self.engine = engine

    def write(self, report: SyncReport, action: str) -> SyncLogEntry:
        entry = SyncLogEntry(
            action=action,
            status=report.status,
            message=report.summary(),
            details=[o.to_dict() for o in report.outcomes],
        )
        with Session(self.engine) as s:
            s.add(entry)
            s.commit()
            s.refresh(entry)
        return entry

    def latest(self, action: Optional[str] = None) -> Optional[SyncLogEntry]:
        with Session(self.engine) as s:
            stmt = select(SyncLogEntry)
            if action:
                stmt = stmt.where(SyncLogEntry.action == action)
            return s.exec(
                stmt.order_by(SyncLogEntry.created_at.desc(), SyncLogEntry.id.desc())
            ).first()
