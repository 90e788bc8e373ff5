"""
SQL rendition of the search ranking in tos.search.ranking.

The WHERE clause keeps rows whose stock id or contractor contains the query
(exact and prefix matches are substrings too). A single CASE expression maps
each row to tiers 1-4, then ties break on stock id length and stock id, the
same order rank_records() produces. There is no fuzzy tier in SQL.

Both sides of every comparison are lower-cased, and LIKE wildcards in the
query are escaped so "%" and "_" only ever match themselves.
"""
from typing import List

from sqlalchemy import case, func, or_
from sqlmodel import select

from tos.models.record import TosRecord
from tos.search.ranking import (
    TIER_CONTRACTOR,
    TIER_EXACT,
    TIER_PREFIX,
    TIER_SUBSTRING,
    normalize_query,
)

LIKE_ESCAPE = "/"


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def match_condition(query: str):
    """WHERE predicate selecting rows that match tiers 1-4 for a normalized query."""
    contains = f"%{escape_like(query)}%"
    return or_(
        func.lower(TosRecord.stock_id).like(contains, escape=LIKE_ESCAPE),
        func.lower(TosRecord.contractor).like(contains, escape=LIKE_ESCAPE),
    )


def relevance_order(query: str) -> List:
    """ORDER BY terms: tier, then stock id length, then stock id."""
    escaped = escape_like(query)
    stock_id = func.lower(TosRecord.stock_id)
    contractor = func.lower(TosRecord.contractor)
    tier = case(
        (stock_id == query, TIER_EXACT),
        (stock_id.like(f"{escaped}%", escape=LIKE_ESCAPE), TIER_PREFIX),
        (stock_id.like(f"%{escaped}%", escape=LIKE_ESCAPE), TIER_SUBSTRING),
        (contractor.like(f"%{escaped}%", escape=LIKE_ESCAPE), TIER_CONTRACTOR),
        else_=TIER_CONTRACTOR + 1,
    )
    return [tier, func.char_length(TosRecord.stock_id), TosRecord.stock_id]


def search_conditions(query: str) -> List:
    q = normalize_query(query)
    return [match_condition(q)] if q else []


def build_search_statement(query: str, *filters):
    """SELECT of matching records in relevance order.

    filters are extra WHERE conditions (contractor, status, date range).
    A blank query selects every record, newest first (the listing order).
    """
    q = normalize_query(query)
    statement = select(TosRecord).where(*search_conditions(q), *filters)
    if not q:
        return statement.order_by(TosRecord.date.desc(), TosRecord.id.desc())
    return statement.order_by(*relevance_order(q))


def build_count_statement(query: str, *filters):
    """SELECT COUNT(*) over the same rows build_search_statement() returns."""
    return (
        select(func.count())
        .select_from(TosRecord)
        .where(*search_conditions(query), *filters)
    )
