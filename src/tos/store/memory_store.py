"""
In-memory record store, used when the site database is unreachable.

Search goes through the same ranking as the offline client, with the fuzzy
tier switched off so answers match what the SQL store would return.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from tos.db.sample_data import sample_records
from tos.errors import NotFoundError, TosError
from tos.models.record import TosRecord, validate_update
from tos.search.ranking import normalize_query, rank_records
from tos.store.base import (
    DEFAULT_PAGE_SIZE,
    BulkUpdateItem,
    BulkUpdateResult,
    Page,
    SearchFilters,
)

logger = logging.getLogger(__name__)


def _listing_order(records: Iterable[TosRecord]) -> List[TosRecord]:
    return sorted(records, key=lambda r: (r.date, r.id), reverse=True)


def _apply_filters(records: List[TosRecord], filters: SearchFilters) -> List[TosRecord]:
    if filters.contractor:
        records = [r for r in records if r.contractor == filters.contractor]
    if filters.status:
        records = [r for r in records if r.stock_status == filters.status]
    if filters.has_date_range:
        records = [r for r in records if filters.date_start <= r.date <= filters.date_end]
    return records


class MemoryRecordStore:
    """Record store holding records in a plain list. Not persistent."""

    def __init__(self, records: Optional[Iterable[TosRecord]] = None):
        self._records: List[TosRecord] = list(records or [])

    @classmethod
    def with_sample_data(cls) -> "MemoryRecordStore":
        logger.info("Using in-memory sample TOS data")
        return cls(sample_records())

    def list_records(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> Page:
        ordered = _listing_order(self._records)
        return Page(
            records=ordered[offset:offset + limit],
            total=len(ordered),
            limit=limit,
            offset=offset,
        )

    def search_records(self, query: str, filters: Optional[SearchFilters] = None) -> Page:
        filters = filters or SearchFilters()
        if normalize_query(query):
            matches = rank_records(query, self._records, fuzzy=False)
        else:
            matches = _listing_order(self._records)
        matches = _apply_filters(matches, filters)

        logger.info("Memory: search %r returned %d results", query, len(matches))
        return Page(
            records=matches[filters.offset:filters.offset + filters.limit],
            total=len(matches),
            limit=filters.limit,
            offset=filters.offset,
        )

    def get_record(self, record_id: int) -> TosRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise NotFoundError(record_id)

    def update_record(self, record_id: int, field: str, value: str) -> TosRecord:
        attr = validate_update(field, value)
        record = self.get_record(record_id)
        setattr(record, attr, value)
        record.updated_at = datetime.utcnow()
        logger.info("Memory: updated record %s: %s = %s", record_id, field, value)
        return record

    def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        result = BulkUpdateResult()
        for update in updates:
            try:
                self.update_record(update.id, update.field, update.value)
            except TosError as exc:
                result.record_failure(update.id, str(exc))
            else:
                result.record_success()
        logger.info(
            "Memory: bulk update completed: %d successful, %d failed",
            result.successful,
            result.failed,
        )
        return result

    def get_contractors(self) -> List[str]:
        return sorted({r.contractor for r in self._records})

    def get_statuses(self) -> List[str]:
        return sorted({r.stock_status for r in self._records})

    def ping(self) -> bool:
        return True
