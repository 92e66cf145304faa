"""SQLModel engine construction and session dependency."""
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from ordersync.config import get_settings

_engine = None


def build_engine(database_url: str):
    """Create an engine and make sure the sync tables exist."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, connect_args=connect_args)
    # Import models so metadata is populated before create_all
    from ordersync.models.sync import ApiCredential, SyncLogEntry  # noqa
    SQLModel.metadata.create_all(engine)
    return engine


def get_engine():
    """Return the process engine, creating it from settings on first call."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database_url)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session."""
    with Session(get_engine()) as session:
        yield session
