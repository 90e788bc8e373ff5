"""Offline mutation log entries."""
from sqlmodel import Field, SQLModel


class PendingUpdate(SQLModel, table=True):
    """
    A single field edit applied locally and not yet confirmed by the server.

    id is "{record_id}-{field}-{timestamp}"; timestamps are epoch milliseconds,
    strictly increasing per cache, so repeated edits of one field never collide.
    """

    __tablename__ = "pending_update"

    id: str = Field(primary_key=True)
    record_id: int = Field(index=True)
    field: str  # "SHIFT" or "STOCK_STATUS"
    old_value: str
    new_value: str
    timestamp: int = Field(index=True)
    synced: bool = False
