"""Shared test fixtures."""
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from ordersync.models.sync import ApiCredential, SyncLogEntry  # noqa: F401



@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="seed_credentials")
def seed_credentials_fixture(engine):
    """Insert credential rows; returns a callable taking (channel, brand_id, is_active) tuples."""

    def _seed(*rows):
        with Session(engine) as s:
            for row in rows:
                channel, brand_id = row[0], row[1]
                is_active = row[2] if len(row) > 2 else True
                s.add(ApiCredential(channel=channel, brand_id=brand_id, is_active=is_active))
            s.commit()

    return _seed
