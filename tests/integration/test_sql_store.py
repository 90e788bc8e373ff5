"""Integration tests for SqlRecordStore against in-memory SQLite."""
from datetime import date

import pytest
from sqlmodel import Session, create_engine

from tos.errors import InvalidFieldError, NotFoundError, StoreUnavailableError, ValidationError
from tos.models.record import TosRecord
from tos.store.base import BulkUpdateItem, SearchFilters
from tos.store.sql_store import SqlRecordStore


class TestListRecords:
    def test_newest_first(self, sql_store):
        page = sql_store.list_records()
        assert [r.id for r in page.records] == [8, 7, 6, 5, 4, 3, 2, 1]
        assert page.total == 8
        assert page.has_more is False

    def test_pagination(self, sql_store):
        page = sql_store.list_records(limit=2, offset=2)
        assert [r.id for r in page.records] == [6, 5]
        assert page.total == 8
        assert page.has_more is True


class TestSearchRecords:
    def test_ranked_by_tier_then_length(self, sql_store):
        page = sql_store.search_records("5348")
        assert [r.stock_id for r in page.records] == ["BB.D.5348", "CC.A.5348.01", "DD.C.5348.02"]

    def test_contractor_match(self, sql_store):
        page = sql_store.search_records("xyz")
        assert [r.stock_id for r in page.records] == ["CC.A.5348.01"]

    def test_filters_and_total(self, sql_store):
        page = sql_store.search_records(
            "mining", SearchFilters(status="Active", limit=1)
        )
        assert [r.stock_id for r in page.records] == ["BB.D.5348"]
        assert page.total == 2
        assert page.has_more is True

    def test_date_range_is_inclusive(self, sql_store):
        filters = SearchFilters(date_start=date(2024, 1, 17), date_end=date(2024, 1, 18))
        page = sql_store.search_records("", filters)
        assert [r.id for r in page.records] == [8, 7, 6, 5]

    def test_contractor_filter(self, sql_store):
        page = sql_store.search_records("", SearchFilters(contractor="JKL Corp"))
        assert [r.stock_id for r in page.records] == ["FF.A.9834.05"]

    def test_no_match(self, sql_store):
        page = sql_store.search_records("zzzz")
        assert page.records == []
        assert page.total == 0


class TestUpdates:
    def test_update_record(self, sql_store):
        before = sql_store.get_record(2)
        record = sql_store.update_record(2, "STOCK_STATUS", "Empty")

        assert record.stock_status == "Empty"
        assert sql_store.get_record(2).stock_status == "Empty"
        assert record.updated_at >= before.updated_at

    def test_update_missing(self, sql_store):
        with pytest.raises(NotFoundError, match="Record with ID 999 not found"):
            sql_store.update_record(999, "SHIFT", "Day Shift")

    def test_update_invalid_field(self, sql_store):
        with pytest.raises(InvalidFieldError):
            sql_store.update_record(1, "STOCK_ID", "ZZ.Z.0001")
        assert sql_store.get_record(1).stock_id == "BB.D.5348"

    def test_update_invalid_value(self, sql_store):
        with pytest.raises(ValidationError):
            sql_store.update_record(1, "SHIFT", "Graveyard Shift")

    def test_bulk_update_partial_failure(self, sql_store):
        result = sql_store.bulk_update([
            BulkUpdateItem(id=1, field="STOCK_STATUS", value="Full"),
            BulkUpdateItem(id=999, field="STOCK_STATUS", value="Full"),
            BulkUpdateItem(id=3, field="DATE", value="2024-01-01"),
            BulkUpdateItem(id=4, field="SHIFT", value="Night Shift"),
        ])

        assert result.successful == 2
        assert result.failed == 2
        assert result.errors == [
            {"id": 999, "error": "Record with ID 999 not found"},
            {"id": 3, "error": "Invalid field: DATE"},
        ]
        assert sql_store.get_record(1).stock_status == "Full"
        assert sql_store.get_record(4).shift == "Night Shift"
        assert sql_store.get_record(3).date == date(2024, 1, 16)


class TestLookups:
    def test_contractors(self, sql_store):
        contractors = sql_store.get_contractors()
        assert contractors[0] == "ABC Mining Co"
        assert contractors == sorted(contractors)
        assert len(contractors) == 8

    def test_statuses_are_distinct(self, sql_store, seeded_engine):
        with Session(seeded_engine) as s:
            s.add(TosRecord(
                contractor="Extra Co",
                date=date(2024, 1, 19),
                shift="Day Shift",
                stock_id="JJ.A.0001",
                stock_status="Active",
            ))
            s.commit()
        statuses = sql_store.get_statuses()
        assert statuses.count("Active") == 1
        assert statuses == sorted(statuses)

    def test_ping(self, sql_store):
        assert sql_store.ping() is True


class TestUnavailableDatabase:
    @pytest.fixture(name="broken_store")
    def broken_store_fixture(self):
        engine = create_engine("sqlite:////nonexistent/dir/tos.db")
        return SqlRecordStore(engine)

    def test_ping_is_false(self, broken_store):
        assert broken_store.ping() is False

    def test_search_raises_unavailable(self, broken_store):
        with pytest.raises(StoreUnavailableError):
            broken_store.search_records("5348")

    def test_update_raises_unavailable(self, broken_store):
        with pytest.raises(StoreUnavailableError):
            broken_store.update_record(1, "SHIFT", "Day Shift")
