"""Tests for database migration helpers."""
import pytest
from sqlalchemy import text

from conftest import memory_engine
from tos.db.engine import init_store
from tos.db.migrations import run_migrations

LEGACY_DDL = """
CREATE TABLE tos_status (
    id INTEGER PRIMARY KEY,
    contractor TEXT NOT NULL,
    date DATE NOT NULL,
    shift TEXT NOT NULL,
    stock_id TEXT NOT NULL UNIQUE,
    stock_status TEXT NOT NULL
)
"""


def _columns(engine):
    with engine.connect() as conn:
        return {row[1] for row in conn.execute(text("PRAGMA table_info(tos_status)"))}


@pytest.fixture(name="legacy_engine")
def legacy_engine_fixture():
    """In-memory SQLite with a hand-made table lacking the timestamp columns."""
    engine = memory_engine()
    with engine.connect() as conn:
        conn.execute(text(LEGACY_DDL))
        conn.execute(text(
            "INSERT INTO tos_status (id, contractor, date, shift, stock_id, stock_status) "
            "VALUES (1, 'ABC Mining Co', '2024-01-15', 'Day Shift', 'BB.D.5348', 'Active')"
        ))
        conn.commit()
    return engine


class TestRunMigrations:
    def test_adds_timestamp_columns(self, legacy_engine):
        run_migrations(legacy_engine)
        assert {"created_at", "updated_at"} <= _columns(legacy_engine)

    def test_is_idempotent(self, legacy_engine):
        run_migrations(legacy_engine)
        run_migrations(legacy_engine)  # second call must be safe
        assert {"created_at", "updated_at"} <= _columns(legacy_engine)

    def test_keeps_existing_rows(self, legacy_engine):
        run_migrations(legacy_engine)
        with legacy_engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM tos_status")).scalar()
        assert count == 1

    def test_init_store_on_fresh_db(self):
        engine = memory_engine()
        init_store(engine)
        init_store(engine)
        assert {"stock_id", "created_at", "updated_at"} <= _columns(engine)
