"""
Schema migrations for the pile status table.

Sites that created TOS_STATUS by hand before this service existed may lack
the audit timestamp columns. Each migration is idempotent: columns are only
added if absent.

Called from init_store() after create_all() so both fresh installs and
existing databases are handled without manual steps.
"""
import logging

from sqlalchemy import text

logger = logging.getLogger(__name__)


def run_migrations(engine) -> None:
    """Apply all pending schema migrations.

    Safe to call multiple times. Only SQLite is migrated here (PRAGMA
    table_info); other backends are managed by the site DBA.

    Args:
        engine: SQLAlchemy engine (SQLModel create_engine result).
    """
    if engine.dialect.name != "sqlite":
        return

    with engine.connect() as conn:
        _add_column_if_missing(conn, "tos_status", "created_at", "DATETIME")
        _add_column_if_missing(conn, "tos_status", "updated_at", "DATETIME")
        conn.commit()


def _add_column_if_missing(conn, table: str, column: str, col_type: str) -> None:
    """Add a column to a table if it doesn't already exist.

    Args:
        conn: SQLAlchemy connection.
        table: Table name (lowercase, as SQLite stores it).
        column: Column name to add.
        col_type: SQLite type string, e.g. "INTEGER", "TEXT", "DATETIME".
    """
    result = conn.execute(text(f"PRAGMA table_info({table})"))
    existing_columns = {row[1] for row in result}
    if column not in existing_columns:
        logger.info("Adding column %s.%s", table, column)
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}"))
