"""Pile status record model and the rules for editing it."""
from datetime import date as date_type, datetime
from typing import Any, Dict, Optional

from sqlmodel import Field, SQLModel

from tos.errors import InvalidFieldError, ValidationError

SHIFT_OPTIONS = (
    "Day Shift",
    "Night Shift",
    "Morning Shift",
    "Afternoon Shift",
)

STOCK_STATUS_OPTIONS = (
    "Active",
    "Inactive",
    "Maintenance",
    "Full",
    "Empty",
    "Reserved",
    "Processing",
)

# Wire field name -> model attribute. Nothing else may change after creation.
MUTABLE_FIELDS: Dict[str, str] = {
    "SHIFT": "shift",
    "STOCK_STATUS": "stock_status",
}

_FIELD_OPTIONS = {
    "SHIFT": SHIFT_OPTIONS,
    "STOCK_STATUS": STOCK_STATUS_OPTIONS,
}


class TosRecord(SQLModel, table=True):
    """One row per ore storage pile (TOS_STATUS in the site database)."""

    __tablename__ = "tos_status"

    id: Optional[int] = Field(default=None, primary_key=True)
    contractor: str = Field(index=True)
    date: date_type = Field(index=True)
    shift: str
    stock_id: str = Field(unique=True, index=True)
    stock_status: str = Field(index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def mutable_attribute(field: str) -> str:
    """Map a wire field name to its model attribute.

    Raises:
        InvalidFieldError: if the field is not SHIFT or STOCK_STATUS.
    """
    try:
        return MUTABLE_FIELDS[field]
    except KeyError:
        raise InvalidFieldError(field) from None


def validate_update(field: str, value: str) -> str:
    """Check a (field, value) edit and return the attribute it targets.

    Raises:
        InvalidFieldError: field is not mutable.
        ValidationError: value is not one of the field's options.
    """
    attr = mutable_attribute(field)
    if value not in _FIELD_OPTIONS[field]:
        raise ValidationError(
            f"Invalid value for {field}: {value!r} "
            f"(expected one of: {', '.join(_FIELD_OPTIONS[field])})"
        )
    return attr


def record_to_wire(record: TosRecord) -> Dict[str, Any]:
    """Serialize a record with the column names API clients expect."""
    return {
        "ID": record.id,
        "CONTRACTOR": record.contractor,
        "DATE": record.date.isoformat(),
        "SHIFT": record.shift,
        "STOCK_ID": record.stock_id,
        "STOCK_STATUS": record.stock_status,
    }


def record_from_wire(data: Dict[str, Any]) -> TosRecord:
    """Inverse of record_to_wire. DATE may carry a time part (SQL Server dates do)."""
    raw_date = str(data["DATE"])
    return TosRecord(
        id=int(data["ID"]),
        contractor=data["CONTRACTOR"],
        date=date_type.fromisoformat(raw_date[:10]),
        shift=data["SHIFT"],
        stock_id=data["STOCK_ID"],
        stock_status=data["STOCK_STATUS"],
    )
