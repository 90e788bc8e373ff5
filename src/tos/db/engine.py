"""Engine construction and schema setup for the authoritative store and the offline cache."""
from pathlib import Path
from typing import Optional

from sqlmodel import SQLModel, create_engine

from tos.config import Settings, get_settings
from tos.db.migrations import run_migrations
from tos.models.pending import PendingUpdate
from tos.models.record import TosRecord
from tos.models.sync import SyncLog

# The server only holds records; the offline cache also keeps the mutation log.
STORE_TABLES = [TosRecord.__table__]
CACHE_TABLES = [TosRecord.__table__, PendingUpdate.__table__, SyncLog.__table__]


def build_engine(settings: Optional[Settings] = None):
    """Create the authoritative store engine from settings.

    Non-SQLite URLs get a bounded QueuePool: requests beyond
    pool_size + max_overflow wait up to pool_timeout for a free connection.
    """
    settings = settings or get_settings()
    url = settings.database_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
    )


def build_cache_engine(path: str):
    """Create a SQLite engine for the local offline cache at path."""
    db_path = Path(path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )


def init_store(engine) -> None:
    """Create the record table (idempotent) and apply column migrations."""
    SQLModel.metadata.create_all(engine, tables=STORE_TABLES)
    run_migrations(engine)


def init_cache(engine) -> None:
    """Create the offline cache tables (idempotent)."""
    SQLModel.metadata.create_all(engine, tables=CACHE_TABLES)
