"""
Authoritative record store on a relational database (SQLModel / SQLAlchemy).

Connection-level failures surface as StoreUnavailableError so that
FallbackRecordStore can switch to the in-memory copy. Lookups and field
validation raise NotFoundError / InvalidFieldError / ValidationError as usual.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlmodel import Session, select

from tos.errors import NotFoundError, StoreUnavailableError, TosError
from tos.models.record import TosRecord, validate_update
from tos.search.sql import build_count_statement, build_search_statement
from tos.store.base import (
    DEFAULT_PAGE_SIZE,
    BulkUpdateItem,
    BulkUpdateResult,
    Page,
    SearchFilters,
)

logger = logging.getLogger(__name__)


@contextmanager
def _unavailable_on_db_error(operation: str):
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError(f"{operation} failed: {exc}") from exc


def _filter_conditions(filters: SearchFilters) -> List:
    conditions = []
    if filters.contractor:
        conditions.append(TosRecord.contractor == filters.contractor)
    if filters.status:
        conditions.append(TosRecord.stock_status == filters.status)
    if filters.has_date_range:
        conditions.append(TosRecord.date.between(filters.date_start, filters.date_end))
    return conditions


class SqlRecordStore:
    """Record store backed by the site database."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (see tos.db.engine.build_engine).
        """
        self.engine = engine

    def list_records(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> Page:
        """Page through all records, newest date first."""
        return self.search_records("", SearchFilters(limit=limit, offset=offset))

    def search_records(self, query: str, filters: Optional[SearchFilters] = None) -> Page:
        """Ranked search (tiers 1-4) with exact-match filters and pagination."""
        filters = filters or SearchFilters()
        conditions = _filter_conditions(filters)

        with _unavailable_on_db_error("search"), Session(self.engine) as s:
            total = s.exec(build_count_statement(query, *conditions)).one()
            records = s.exec(
                build_search_statement(query, *conditions)
                .offset(filters.offset)
                .limit(filters.limit)
            ).all()

        if query and query.strip():
            logger.info("Search %r returned %d of %d matches", query, len(records), total)
        return Page(records=list(records), total=total, limit=filters.limit, offset=filters.offset)

    def get_record(self, record_id: int) -> TosRecord:
        with _unavailable_on_db_error("get"), Session(self.engine) as s:
            record = s.get(TosRecord, record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def update_record(self, record_id: int, field: str, value: str) -> TosRecord:
        """Set one mutable field and return the updated record."""
        attr = validate_update(field, value)

        with _unavailable_on_db_error("update"), Session(self.engine) as s:
            record = s.get(TosRecord, record_id)
            if record is None:
                raise NotFoundError(record_id)
            setattr(record, attr, value)
            record.updated_at = datetime.utcnow()
            s.add(record)
            s.commit()
            s.refresh(record)

        logger.info("Updated TOS record %s: %s = %s", record_id, field, value)
        return record

    def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        """
        Apply each update independently; one bad item never aborts the batch.

        Items are validated and looked up before anything is written, so a
        failing item leaves no partial change. All successful items are
        committed together.
        """
        result = BulkUpdateResult()

        with _unavailable_on_db_error("bulk update"), Session(self.engine) as s:
            now = datetime.utcnow()
            for update in updates:
                try:
                    attr = validate_update(update.field, update.value)
                    record = s.get(TosRecord, update.id)
                    if record is None:
                        raise NotFoundError(update.id)
                except TosError as exc:
                    logger.warning("Bulk update failed for ID %s: %s", update.id, exc)
                    result.record_failure(update.id, str(exc))
                    continue

                setattr(record, attr, update.value)
                record.updated_at = now
                s.add(record)
                result.record_success()
            s.commit()

        logger.info(
            "Bulk update completed: %d successful, %d failed",
            result.successful,
            result.failed,
        )
        return result

    def get_contractors(self) -> List[str]:
        with _unavailable_on_db_error("contractors"), Session(self.engine) as s:
            rows = s.exec(
                select(TosRecord.contractor).distinct().order_by(TosRecord.contractor)
            ).all()
        return list(rows)

    def get_statuses(self) -> List[str]:
        with _unavailable_on_db_error("statuses"), Session(self.engine) as s:
            rows = s.exec(
                select(TosRecord.stock_status).distinct().order_by(TosRecord.stock_status)
            ).all()
        return list(rows)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.warning("Database connection test failed: %s", exc)
            return False
