"""The SQL search, the in-memory store and the local ranking agree on order."""
import pytest
from sqlmodel import Session

from conftest import make_record
from tos.db.sample_data import sample_records
from tos.search.ranking import rank_records
from tos.store.memory_store import MemoryRecordStore
from tos.store.sql_store import SqlRecordStore


def _all_records():
    """The sample set plus a bare numeric id, a bare prefix and LIKE wildcards."""
    return sample_records() + [
        make_record(9, "5348", contractor="Numeric Piles"),
        make_record(10, "BB.D", contractor="Edge Co"),
        make_record(11, "X_Y%Z", contractor="Wildcard Ltd"),
    ]


CASES = [
    ("5348", ["5348", "BB.D.5348", "CC.A.5348.01", "DD.C.5348.02"]),
    ("bb.d", ["BB.D", "BB.D.5348"]),
    ("mining", ["BB.D.5348", "EE.B.7621", "II.A.6677.03"]),
    ("d", ["DD.C.5348.02", "BB.D", "BB.D.5348", "GG.D.1122", "X_Y%Z", "HH.C.4455"]),
    ("_", ["X_Y%Z"]),
    ("%", ["X_Y%Z"]),
    ("zzz", []),
    ("7621", ["EE.B.7621"]),
    ("  CC.A  ", ["CC.A.5348.01"]),
]


@pytest.fixture(name="parity_sql_store")
def parity_sql_store_fixture(engine):
    with Session(engine) as s:
        for record in _all_records():
            s.add(record)
        s.commit()
    return SqlRecordStore(engine)


@pytest.mark.parametrize("query,expected", CASES)
def test_sql_store_order(parity_sql_store, query, expected):
    page = parity_sql_store.search_records(query)
    assert [r.stock_id for r in page.records] == expected


@pytest.mark.parametrize("query,expected", CASES)
def test_memory_store_order(query, expected):
    store = MemoryRecordStore(_all_records())
    page = store.search_records(query)
    assert [r.stock_id for r in page.records] == expected


@pytest.mark.parametrize("query,expected", CASES)
def test_local_ranking_order(query, expected):
    result = rank_records(query, _all_records(), fuzzy=False)
    assert [r.stock_id for r in result] == expected
