"""Request bodies and the response envelope."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tos.store.base import BulkUpdateItem, Page

MAX_BULK_UPDATES = 100


class UpdateRequest(BaseModel):
    field: str  # "SHIFT" or "STOCK_STATUS"; checked by the store
    value: str = Field(min_length=1)


class BulkUpdateEntry(BaseModel):
    id: int
    field: str  # validated per item so one bad field never fails the batch
    value: str = Field(min_length=1)

    def to_item(self) -> BulkUpdateItem:
        return BulkUpdateItem(id=self.id, field=self.field, value=self.value)


class BulkUpdateRequest(BaseModel):
    updates: List[BulkUpdateEntry] = Field(min_length=1, max_length=MAX_BULK_UPDATES)


def envelope(data: Any = None, message: Optional[str] = None, **extra) -> Dict[str, Any]:
    """Successful response body: {"success": true, "data": ..., ...}."""
    body: Dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body


def error_envelope(error: str, message: Optional[str] = None, **extra) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body


def page_envelope(page: Page, records: List[Dict], **extra) -> Dict[str, Any]:
    return envelope(records, pagination=page.pagination(), **extra)
