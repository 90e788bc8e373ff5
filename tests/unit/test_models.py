"""Tests for the record model and edit rules."""
from datetime import date, datetime

import pytest
from sqlmodel import Session, select

from tos.errors import InvalidFieldError, ValidationError
from tos.models.pending import PendingUpdate
from tos.models.record import (
    MUTABLE_FIELDS,
    TosRecord,
    mutable_attribute,
    record_from_wire,
    record_to_wire,
    validate_update,
)
from tos.models.sync import SyncLog


class TestTosRecord:
    def test_persists_and_retrieves_from_db(self, test_session: Session):
        record = TosRecord(
            contractor="ABC Mining Co",
            date=date(2024, 1, 15),
            shift="Day Shift",
            stock_id="BB.D.5348",
            stock_status="Active",
        )
        test_session.add(record)
        test_session.commit()
        test_session.refresh(record)

        result = test_session.exec(
            select(TosRecord).where(TosRecord.stock_id == "BB.D.5348")
        ).first()
        assert result is not None
        assert result.id is not None
        assert result.date == date(2024, 1, 15)

    def test_timestamps_default_to_now(self):
        record = TosRecord(
            contractor="ABC Mining Co",
            date=date(2024, 1, 15),
            shift="Day Shift",
            stock_id="BB.D.5348",
            stock_status="Active",
        )
        assert isinstance(record.created_at, datetime)
        assert isinstance(record.updated_at, datetime)

    def test_table_name(self):
        assert TosRecord.__tablename__ == "tos_status"


class TestEditRules:
    def test_only_shift_and_status_are_mutable(self):
        assert set(MUTABLE_FIELDS) == {"SHIFT", "STOCK_STATUS"}

    def test_mutable_attribute_maps_wire_names(self):
        assert mutable_attribute("SHIFT") == "shift"
        assert mutable_attribute("STOCK_STATUS") == "stock_status"

    @pytest.mark.parametrize("field", ["STOCK_ID", "CONTRACTOR", "DATE", "ID", "shift", ""])
    def test_other_fields_rejected(self, field):
        with pytest.raises(InvalidFieldError):
            mutable_attribute(field)

    def test_validate_update_accepts_known_value(self):
        assert validate_update("STOCK_STATUS", "Full") == "stock_status"

    def test_validate_update_rejects_unknown_value(self):
        with pytest.raises(ValidationError, match="Invalid value for SHIFT"):
            validate_update("SHIFT", "Lunch Shift")

    def test_field_checked_before_value(self):
        with pytest.raises(InvalidFieldError):
            validate_update("STOCK_ID", "Lunch Shift")


class TestWireFormat:
    def test_record_to_wire_uses_column_names(self):
        record = TosRecord(
            id=1,
            contractor="ABC Mining Co",
            date=date(2024, 1, 15),
            shift="Day Shift",
            stock_id="BB.D.5348",
            stock_status="Active",
        )
        assert record_to_wire(record) == {
            "ID": 1,
            "CONTRACTOR": "ABC Mining Co",
            "DATE": "2024-01-15",
            "SHIFT": "Day Shift",
            "STOCK_ID": "BB.D.5348",
            "STOCK_STATUS": "Active",
        }

    def test_record_from_wire_accepts_datetime_strings(self):
        record = record_from_wire({
            "ID": "4",
            "CONTRACTOR": "GHI Mining",
            "DATE": "2024-01-16T00:00:00.000Z",
            "SHIFT": "Afternoon Shift",
            "STOCK_ID": "EE.B.7621",
            "STOCK_STATUS": "Processing",
        })
        assert record.id == 4
        assert record.date == date(2024, 1, 16)
        assert record.stock_status == "Processing"


class TestPendingUpdate:
    def test_synced_defaults_to_false(self, test_session: Session):
        pending = PendingUpdate(
            id="1-SHIFT-1700000000000",
            record_id=1,
            field="SHIFT",
            old_value="Day Shift",
            new_value="Night Shift",
            timestamp=1700000000000,
        )
        test_session.add(pending)
        test_session.commit()
        test_session.refresh(pending)
        assert pending.synced is False


class TestSyncLog:
    def test_default_status_is_running(self):
        log = SyncLog()
        assert log.status == "running"
        assert log.updates_synced == 0
        assert log.finished_at is None
