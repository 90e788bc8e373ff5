"""
PendingSyncService: replays the offline mutation log against the server.

Flow for one flush:
  1. Read pending edits (insertion order); stop early if there are none
  2. Create SyncLog (status="running")
  3. For each edit: PUT the new value; on success clear the entry
  4. Update SyncLog ("success", "partial" or "error")

Failed edits stay queued for the next flush. Once the server is unreachable
the remaining edits are not attempted. There is no conflict detection: the
queued value overwrites whatever the server holds (last write wins).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from tos.errors import StoreUnavailableError, TosError
from tos.models.sync import SyncLog

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    synced: int = 0
    failed: int = 0
    remaining: int = 0
    status: str = "success"
    unreachable: bool = False  # flush stopped because the server could not be reached


class PendingSyncService:
    """Flushes an OfflineCache's pending edits through a TosApiClient."""

    def __init__(self, client, cache):
        """
        Args:
            client: TosApiClient instance (or AsyncMock in tests).
            cache: OfflineCache holding the pending edits and the sync log.
        """
        self.client = client
        self.cache = cache

    async def flush(self) -> SyncResult:
        """
        Push every pending edit to the server, oldest first.

        Returns:
            Counts of synced / failed edits and how many are still queued.
        """
        pending = self.cache.get_pending_updates()
        if not pending:
            return SyncResult()

        log = self._create_sync_log()
        result = SyncResult()
        last_error: Optional[str] = None

        for update in pending:
            try:
                await self.client.update_record(
                    update.record_id, update.field, update.new_value
                )
            except StoreUnavailableError as exc:
                result.failed += 1
                last_error = str(exc)
                logger.warning("Server unavailable, keeping %s queued: %s", update.id, exc)
                result.unreachable = True
                break
            except TosError as exc:
                result.failed += 1
                last_error = str(exc)
                logger.warning("Sync of %s rejected, keeping it queued: %s", update.id, exc)
                continue

            self.cache.clear_pending_update(update.id)
            result.synced += 1

        result.remaining = len(self.cache.get_pending_updates())
        if result.failed == 0:
            result.status = "success"
        elif result.synced:
            result.status = "partial"
        else:
            result.status = "error"

        self._finish_sync_log(log, result, error_message=last_error)
        logger.info(
            "Sync finished (%s): %d synced, %d failed, %d still pending",
            result.status,
            result.synced,
            result.failed,
            result.remaining,
        )
        return result

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _create_sync_log(self) -> SyncLog:
        log = SyncLog(started_at=datetime.utcnow(), status="running")
        with Session(self.cache.engine) as s:
            s.add(log)
            s.commit()
            s.refresh(log)
        return log

    def _finish_sync_log(
        self,
        log: SyncLog,
        result: SyncResult,
        *,
        error_message: Optional[str] = None,
    ) -> None:
        with Session(self.cache.engine) as s:
            db_log = s.get(SyncLog, log.id)
            db_log.status = result.status
            db_log.finished_at = datetime.utcnow()
            db_log.updates_synced = result.synced
            db_log.updates_failed = result.failed
            db_log.error_message = error_message
            s.add(db_log)
            s.commit()
