"""Types shared by the record stores, the API and the offline client."""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Protocol

from tos.models.record import TosRecord

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


@dataclass
class SearchFilters:
    """Exact-match filters and pagination applied around a ranked search.

    The date range only applies when both ends are given.
    """

    contractor: Optional[str] = None
    status: Optional[str] = None
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @property
    def has_date_range(self) -> bool:
        return self.date_start is not None and self.date_end is not None


@dataclass
class Page:
    """One page of records plus the total matching count before pagination."""

    records: List[TosRecord]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def pagination(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.has_more,
        }


@dataclass
class BulkUpdateItem:
    id: int
    field: str
    value: str


@dataclass
class BulkUpdateResult:
    """Outcome of a batch of independent field updates.

    errors lists the failing items in input order as {"id", "error"}.
    """

    successful: int = 0
    failed: int = 0
    errors: List[Dict] = field(default_factory=list)

    def record_success(self) -> None:
        self.successful += 1

    def record_failure(self, record_id: int, message: str) -> None:
        self.failed += 1
        self.errors.append({"id": record_id, "error": message})

    def to_dict(self) -> Dict:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "errors": list(self.errors),
        }


class RecordStore(Protocol):
    """What the API needs from a backend holding pile records."""

    def list_records(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> Page: ...

    def search_records(self, query: str, filters: Optional[SearchFilters] = None) -> Page: ...

    def get_record(self, record_id: int) -> TosRecord: ...

    def update_record(self, record_id: int, field: str, value: str) -> TosRecord: ...

    def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult: ...

    def get_contractors(self) -> List[str]: ...

    def get_statuses(self) -> List[str]: ...

    def ping(self) -> bool: ...
