"""
Client-side data layer: remote first, offline cache as the fallback.

Reads go to the server when the connectivity hint says online, and their
results are mirrored into the cache. Any StoreUnavailableError flips the
hint to offline and the same call is answered from the cache. Edits are
always applied locally first and queued; when online the whole queue is
flushed oldest first, so a newer edit is never overtaken by an older one.
"""
import logging
from typing import List, Optional

from tos.errors import StoreUnavailableError
from tos.models.record import TosRecord
from tos.offline.cache import OfflineCache
from tos.offline.sync_service import PendingSyncService, SyncResult
from tos.search.ranking import SUGGESTION_LIMIT, normalize_query
from tos.store.base import MAX_PAGE_SIZE, BulkUpdateItem, BulkUpdateResult, SearchFilters

logger = logging.getLogger(__name__)


class OfflineTosManager:
    """Coordinates TosApiClient, OfflineCache and PendingSyncService."""

    def __init__(self, client, cache: OfflineCache, sync_service: Optional[PendingSyncService] = None):
        self.client = client
        self.cache = cache
        self.sync_service = sync_service or PendingSyncService(client=client, cache=cache)
        self.is_online = False

    async def refresh_connectivity(self) -> bool:
        """Probe the server and update the online hint."""
        self.is_online = await self.client.check_connection()
        return self.is_online

    def _went_offline(self, operation: str, exc: Exception) -> None:
        logger.info("API %s failed, using offline cache: %s", operation, exc)
        self.is_online = False

    async def start(self) -> List[TosRecord]:
        """
        First load of a client session.

        Sample records are only loaded when the server is unreachable and the
        cache has nothing to show; once online they are replaced by the
        server listing.
        """
        await self.refresh_connectivity()
        records = await self.load_records()
        if not self.is_online and self.cache.seed_sample_data():
            logger.info("Offline with an empty cache; loaded sample records")
            records = self.cache.get_all_records()
        return records

    async def _fetch_all_records(self, page_size: int) -> List[TosRecord]:
        records: List[TosRecord] = []
        offset = 0
        while True:
            page = await self.client.list_records(limit=page_size, offset=offset)
            records.extend(page.records)
            if not page.has_more or not page.records:
                return records
            offset += len(page.records)

    async def load_records(self, page_size: int = MAX_PAGE_SIZE) -> List[TosRecord]:
        """Replace the cache with the server's full listing, or read the cache."""
        if self.is_online:
            try:
                records = await self._fetch_all_records(page_size)
            except StoreUnavailableError as exc:
                self._went_offline("load", exc)
            else:
                logger.info("Loaded %d records from server", len(records))
                return self.cache.replace_records(records)

        records = self.cache.get_all_records()
        logger.info("Offline mode: %d cached records", len(records))
        return records

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> List[TosRecord]:
        """Ranked search; a blank query returns every cached record."""
        if not normalize_query(query):
            return self.cache.get_all_records()

        if self.is_online:
            try:
                page = await self.client.search(query, filters)
            except StoreUnavailableError as exc:
                self._went_offline("search", exc)
            else:
                return self.cache.upsert_records(page.records)

        return self.cache.search(query)

    def suggest(self, query: str) -> List[TosRecord]:
        """Top matches from the cache for an as-you-type suggestion list."""
        if not normalize_query(query):
            return []
        return self.cache.search(query, limit=SUGGESTION_LIMIT)

    async def update(self, record_id: int, field: str, value: str) -> TosRecord:
        """
        Apply an edit locally, then flush the queue if online.

        The local change and its queue entry survive any remote failure; the
        entry is only cleared once the server accepts the update. Edits still
        queued from an earlier outage go out first.
        """
        self.cache.apply_edit(record_id, field, value)
        if self.is_online:
            await self._flush()
        return self.cache.get_record(record_id)

    async def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        """Apply a batch locally; successful items are queued and flushed if online."""
        result = self.cache.bulk_update(updates)
        if self.is_online and result.successful:
            await self._flush()
        return result

    def pending_count(self) -> int:
        return len(self.cache.get_pending_updates())

    async def sync(self) -> Optional[SyncResult]:
        """Flush the pending queue if the server is reachable. None when offline."""
        if not self.is_online and not await self.refresh_connectivity():
            logger.info("Still offline; %d edits wait for sync", self.pending_count())
            return None
        return await self._flush()

    async def _flush(self) -> SyncResult:
        result = await self.sync_service.flush()
        if result.unreachable:
            logger.info("Server went away during sync; %d edits stay queued", result.remaining)
            self.is_online = False
        return result
