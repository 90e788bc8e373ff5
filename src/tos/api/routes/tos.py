"""Pile record routes: listing, ranked search, field updates, lookups."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tos.api.deps import get_store
from tos.api.schemas import (
    BulkUpdateRequest,
    UpdateRequest,
    envelope,
    page_envelope,
)
from tos.models.record import record_to_wire
from tos.store.base import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, RecordStore, SearchFilters

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_records(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    store: RecordStore = Depends(get_store),
):
    """List records, newest date first."""
    page = store.list_records(limit=limit, offset=offset)
    return page_envelope(page, [record_to_wire(r) for r in page.records])


@router.get("/search")
def search_records(
    q: str = "",
    contractor: Optional[str] = None,
    status: Optional[str] = None,
    date_start: Optional[date] = Query(None, alias="dateStart"),
    date_end: Optional[date] = Query(None, alias="dateEnd"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    store: RecordStore = Depends(get_store),
):
    """
    Ranked search over stock ids and contractors.

    Matches are ordered exact, prefix, substring, then contractor, with
    shorter stock ids first inside a tier. Filters narrow the matches before
    pagination.
    """
    filters = SearchFilters(
        contractor=contractor or None,
        status=status or None,
        date_start=date_start,
        date_end=date_end,
        limit=limit,
        offset=offset,
    )
    logger.info("Search %r with filters %s", q, filters)
    page = store.search_records(q, filters)
    return page_envelope(
        page,
        [record_to_wire(r) for r in page.records],
        query=q,
        filters={
            "contractor": filters.contractor,
            "status": filters.status,
            "dateStart": date_start.isoformat() if date_start else None,
            "dateEnd": date_end.isoformat() if date_end else None,
            "limit": limit,
            "offset": offset,
        },
    )


@router.get("/contractors")
def list_contractors(store: RecordStore = Depends(get_store)):
    """Distinct contractor names, sorted."""
    return envelope(store.get_contractors())


@router.get("/statuses")
def list_statuses(store: RecordStore = Depends(get_store)):
    """Distinct stock statuses in use, sorted."""
    return envelope(store.get_statuses())


@router.post("/bulk-update")
def bulk_update(request: BulkUpdateRequest, store: RecordStore = Depends(get_store)):
    """Apply several field updates; failures are reported per item."""
    result = store.bulk_update([entry.to_item() for entry in request.updates])
    return envelope(
        result.to_dict(),
        message=(
            f"Bulk update completed: {result.successful} successful, "
            f"{result.failed} failed"
        ),
    )


@router.put("/{record_id}")
def update_record(
    record_id: int,
    request: UpdateRequest,
    store: RecordStore = Depends(get_store),
):
    """Set SHIFT or STOCK_STATUS on one record."""
    record = store.update_record(record_id, request.field, request.value)
    return envelope(
        record_to_wire(record),
        message=f"Successfully updated {request.field} for record {record_id}",
    )
