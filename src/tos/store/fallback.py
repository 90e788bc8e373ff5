"""Primary store with an automatic switch to a fallback store."""
import logging
from typing import List, Optional

from tos.errors import StoreUnavailableError
from tos.models.record import TosRecord
from tos.store.base import (
    DEFAULT_PAGE_SIZE,
    BulkUpdateItem,
    BulkUpdateResult,
    Page,
    RecordStore,
    SearchFilters,
)

logger = logging.getLogger(__name__)


class FallbackRecordStore:
    """
    Serve every call from primary; when a read raises StoreUnavailableError,
    log it and answer from fallback instead.

    Writes always go to primary and never to the non-persistent fallback:
    StoreUnavailableError propagates and the caller keeps the edit queued.
    NotFoundError and validation errors from the primary propagate unchanged.
    """

    def __init__(self, primary: RecordStore, fallback: RecordStore):
        self.primary = primary
        self.fallback = fallback

    def _call(self, operation: str, *args, **kwargs):
        try:
            return getattr(self.primary, operation)(*args, **kwargs)
        except StoreUnavailableError as exc:
            logger.warning(
                "Primary store unavailable for %s, falling back to in-memory data: %s",
                operation,
                exc,
            )
            return getattr(self.fallback, operation)(*args, **kwargs)

    def list_records(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> Page:
        return self._call("list_records", limit, offset)

    def search_records(self, query: str, filters: Optional[SearchFilters] = None) -> Page:
        return self._call("search_records", query, filters)

    def get_record(self, record_id: int) -> TosRecord:
        return self._call("get_record", record_id)

    def update_record(self, record_id: int, field: str, value: str) -> TosRecord:
        return self.primary.update_record(record_id, field, value)

    def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        return self.primary.bulk_update(updates)

    def get_contractors(self) -> List[str]:
        return self._call("get_contractors")

    def get_statuses(self) -> List[str]:
        return self._call("get_statuses")

    def ping(self) -> bool:
        """Connectivity of the primary store; the fallback is always up."""
        return self.primary.ping()
