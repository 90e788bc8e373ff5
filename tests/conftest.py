"""Shared test fixtures."""
from datetime import date
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from tos.models.pending import PendingUpdate  # noqa: F401
from tos.models.record import TosRecord
from tos.models.sync import SyncLog  # noqa: F401
from tos.db.sample_data import sample_records
from tos.offline.cache import OfflineCache
from tos.store.sql_store import SqlRecordStore


def make_record(record_id: int, stock_id: str, contractor: str = "Other Co", **overrides) -> TosRecord:
    """Build an unsaved record with defaults for the fields a test doesn't care about."""
    fields = dict(
        id=record_id,
        contractor=contractor,
        date=date(2024, 2, 1),
        shift="Day Shift",
        stock_id=stock_id,
        stock_status="Active",
    )
    fields.update(overrides)
    return TosRecord(**fields)


def memory_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = memory_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="seeded_engine")
def seeded_engine_fixture(engine):
    """The in-memory engine holding the eight sample records (ids 1-8)."""
    with Session(engine) as s:
        for record in sample_records():
            s.add(record)
        s.commit()
    return engine


@pytest.fixture(name="sql_store")
def sql_store_fixture(seeded_engine) -> SqlRecordStore:
    return SqlRecordStore(seeded_engine)


@pytest.fixture(name="offline_cache")
def offline_cache_fixture():
    """An offline cache on its own in-memory database, seeded with the sample records."""
    engine = memory_engine()
    cache = OfflineCache(engine)
    cache.seed_sample_data()
    yield cache
    SQLModel.metadata.drop_all(engine)
