"""
Local offline cache: a SQLite copy of the records plus the mutation log.

Edits are applied to the local copy immediately (optimistic) and appended to
the pending_update table. PendingSyncService later replays the log against
the server and clears each entry once the server has accepted it.

Single process, single writer. No locking.
"""
import logging
import time
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from tos.db.engine import build_cache_engine, init_cache
from tos.db.sample_data import sample_records
from tos.errors import NotFoundError, TosError
from tos.models.pending import PendingUpdate
from tos.models.record import TosRecord, mutable_attribute, validate_update
from tos.search.ranking import rank_records
from tos.store.base import BulkUpdateItem, BulkUpdateResult

logger = logging.getLogger(__name__)


class OfflineCache:
    """Records and pending edits kept on the client."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine for the cache database. Tables are
                created if missing.
        """
        self.engine = engine
        init_cache(engine)
        self._last_timestamp = self._max_pending_timestamp()

    @classmethod
    def open(cls, path: str) -> "OfflineCache":
        """Open (or create) the cache database file at path."""
        return cls(build_cache_engine(path))

    # ─── Records ──────────────────────────────────────────────────────────────

    def get_all_records(self) -> List[TosRecord]:
        with Session(self.engine) as s:
            return list(s.exec(select(TosRecord).order_by(TosRecord.id)).all())

    def get_record(self, record_id: int) -> Optional[TosRecord]:
        with Session(self.engine) as s:
            return s.get(TosRecord, record_id)

    def count_records(self) -> int:
        with Session(self.engine) as s:
            return s.exec(select(func.count()).select_from(TosRecord)).one()

    def replace_records(self, records: Iterable[TosRecord]) -> List[TosRecord]:
        """
        Make the cache hold exactly records, a full server listing.

        Cached rows missing from the listing are removed, along with any edits
        still queued for them: the server would reject those as not found on
        every sync. Edits for records that remain are re-applied on top.
        """
        records = list(records)
        server_ids = [record.id for record in records]
        pending_by_record = self._pending_by_record()

        with Session(self.engine) as s:
            orphaned = s.exec(
                select(PendingUpdate).where(PendingUpdate.record_id.not_in(server_ids))
            ).all()
            for pending in orphaned:
                logger.warning(
                    "Dropping queued edit %s: record %s is not on the server",
                    pending.id,
                    pending.record_id,
                )
                s.delete(pending)
            for cached in s.exec(select(TosRecord)).all():
                s.delete(cached)
            s.flush()

            replaced = []
            for record in records:
                local = TosRecord(**record.model_dump())
                _overlay_pending(local, pending_by_record.get(local.id, []))
                s.add(local)
                replaced.append(local)
            s.commit()
            for local in replaced:
                s.refresh(local)

        logger.info(
            "Replaced cached records with %d from server (%d orphaned edits dropped)",
            len(replaced),
            len(orphaned),
        )
        return sorted(replaced, key=lambda r: r.id)

    def upsert_records(self, records: Iterable[TosRecord]) -> List[TosRecord]:
        """
        Mirror some server records (a search result) into the cache and return
        the cached copies.

        A cached row holding the same stock id under another id is replaced by
        the server's row. Edits still waiting in the log are re-applied on top,
        so a refresh never hides a local change the server has not seen yet.
        """
        pending_by_record = self._pending_by_record()

        merged = []
        with Session(self.engine) as s:
            for record in records:
                clashes = s.exec(
                    select(TosRecord).where(
                        TosRecord.stock_id == record.stock_id,
                        TosRecord.id != record.id,
                    )
                ).all()
                for clash in clashes:
                    logger.info(
                        "Stock id %s moved from record %s to %s",
                        record.stock_id,
                        clash.id,
                        record.id,
                    )
                    s.delete(clash)
                s.flush()

                local = s.merge(TosRecord(**record.model_dump()))
                _overlay_pending(local, pending_by_record.get(local.id, []))
                merged.append(local)
            s.commit()
            for local in merged:
                s.refresh(local)
        return merged

    def seed_sample_data(self) -> int:
        """Load the sample records into an empty cache. Returns rows inserted."""
        if self.count_records() > 0:
            return 0
        records = sample_records()
        with Session(self.engine) as s:
            for record in records:
                s.add(record)
            s.commit()
        logger.info("Seeded offline cache with %d sample records", len(records))
        return len(records)

    def search(self, query: str, limit: Optional[int] = None) -> List[TosRecord]:
        """Ranked local search, fuzzy tier included."""
        return rank_records(query, self.get_all_records(), limit=limit, fuzzy=True)

    # ─── Mutation log ─────────────────────────────────────────────────────────

    def apply_edit(self, record_id: int, field: str, new_value: str) -> PendingUpdate:
        """
        Change one field of a cached record and log the change for sync.

        The new value is visible to reads as soon as this returns.

        Raises:
            InvalidFieldError: field is not SHIFT or STOCK_STATUS.
            ValidationError: new_value is not an allowed option for field.
            NotFoundError: record_id is not in the cache.
        """
        attr = validate_update(field, new_value)

        with Session(self.engine) as s:
            record = s.get(TosRecord, record_id)
            if record is None:
                raise NotFoundError(record_id)

            old_value = getattr(record, attr)
            setattr(record, attr, new_value)

            timestamp = self._next_timestamp()
            pending = PendingUpdate(
                id=f"{record_id}-{field}-{timestamp}",
                record_id=record_id,
                field=field,
                old_value=old_value,
                new_value=new_value,
                timestamp=timestamp,
            )
            s.add(record)
            s.add(pending)
            s.commit()
            s.refresh(pending)

        logger.info("Queued offline edit %s: %r -> %r", pending.id, old_value, new_value)
        return pending

    def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        """apply_edit() each item independently, collecting failures in input order."""
        result = BulkUpdateResult()
        for update in updates:
            try:
                self.apply_edit(update.id, update.field, update.value)
            except TosError as exc:
                result.record_failure(update.id, str(exc))
            else:
                result.record_success()
        return result

    def get_pending_updates(self) -> List[PendingUpdate]:
        """Unsynced edits in the order they were made."""
        with Session(self.engine) as s:
            return list(
                s.exec(
                    select(PendingUpdate)
                    .where(PendingUpdate.synced == False)  # noqa: E712
                    .order_by(PendingUpdate.timestamp)
                ).all()
            )

    def clear_pending_update(self, update_id: str) -> None:
        """Drop one entry after the server accepted it. Unknown ids are ignored."""
        with Session(self.engine) as s:
            pending = s.get(PendingUpdate, update_id)
            if pending is None:
                return
            s.delete(pending)
            s.commit()

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _max_pending_timestamp(self) -> int:
        with Session(self.engine) as s:
            latest = s.exec(select(func.max(PendingUpdate.timestamp))).one()
        return latest or 0

    def _next_timestamp(self) -> int:
        """Epoch milliseconds, bumped so no two log entries share a timestamp."""
        now = int(time.time() * 1000)
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    def _pending_by_record(self) -> Dict[int, List[PendingUpdate]]:
        pending_by_record: Dict[int, List[PendingUpdate]] = {}
        for update in self.get_pending_updates():
            pending_by_record.setdefault(update.record_id, []).append(update)
        return pending_by_record


def _overlay_pending(record: TosRecord, updates: List[PendingUpdate]) -> None:
    """Re-apply queued edits, oldest first, on top of a server copy."""
    for update in updates:
        setattr(record, mutable_attribute(update.field), update.new_value)
