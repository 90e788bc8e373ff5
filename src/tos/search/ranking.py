"""
Relevance ranking of pile records against a free-text query.

Every candidate gets the lowest applicable tier:

    1  exact       stock id equals the query
    2  prefix      stock id starts with the query
    3  substring   stock id contains the query ("5348" finds "BB.D.5348")
    4  contractor  contractor name contains the query
    5  fuzzy       positional distance to the stock id <= 2

Records with no tier are dropped. Matches sort by (tier, stock id length,
stock id). Comparisons are case-insensitive; returned records are untouched.

tos.search.sql expresses tiers 1-4 as a SQL ORDER BY. Tier 5 only exists
here: the authoritative store never does fuzzy matching.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

from tos.models.record import TosRecord

TIER_EXACT = 1
TIER_PREFIX = 2
TIER_SUBSTRING = 3
TIER_CONTRACTOR = 4
TIER_FUZZY = 5

FUZZY_MAX_DISTANCE = 2

# Interactive suggestion lists show at most this many matches.
SUGGESTION_LIMIT = 8


@dataclass
class SearchMatch:
    """A record paired with the tier it matched at. Never persisted."""

    record: TosRecord
    tier: int

    @property
    def sort_key(self):
        return (self.tier, len(self.record.stock_id), self.record.stock_id)


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def bounded_distance(a: str, b: str, limit: int = FUZZY_MAX_DISTANCE) -> int:
    """
    Count positions where a and b differ, up to the longer string's length.

    Not an edit distance: an inserted character shifts every later position.
    Stops counting once the total exceeds limit and returns limit + 1, which
    is also returned straight away when the lengths differ by more than limit.
    """
    if abs(len(a) - len(b)) > limit:
        return limit + 1

    distance = 0
    for i in range(max(len(a), len(b))):
        if i >= len(a) or i >= len(b) or a[i] != b[i]:
            distance += 1
            if distance > limit:
                return limit + 1
    return distance


def classify(query: str, stock_id: str, contractor: str, fuzzy: bool = True) -> Optional[int]:
    """Return the tier for one candidate, or None if it does not match.

    query must already be normalized; stock_id and contractor must be lower-cased.
    """
    if stock_id == query:
        return TIER_EXACT
    if stock_id.startswith(query):
        return TIER_PREFIX
    if query in stock_id:
        return TIER_SUBSTRING
    if query in contractor:
        return TIER_CONTRACTOR
    # Queries of two characters or fewer would fuzzy-match almost any short id.
    if (
        fuzzy
        and len(query) > FUZZY_MAX_DISTANCE
        and bounded_distance(stock_id, query) <= FUZZY_MAX_DISTANCE
    ):
        return TIER_FUZZY
    return None


def rank_matches(
    query: Optional[str],
    records: Iterable[TosRecord],
    fuzzy: bool = True,
) -> List[SearchMatch]:
    """Classify and sort records. A blank query yields no matches."""
    q = normalize_query(query)
    if not q:
        return []

    matches = []
    for record in records:
        tier = classify(q, record.stock_id.lower(), record.contractor.lower(), fuzzy=fuzzy)
        if tier is not None:
            matches.append(SearchMatch(record=record, tier=tier))

    # sort() is stable, so duplicate stock ids keep their input order
    matches.sort(key=lambda m: m.sort_key)
    return matches


def rank_records(
    query: Optional[str],
    records: Iterable[TosRecord],
    limit: Optional[int] = None,
    fuzzy: bool = True,
) -> List[TosRecord]:
    """
    Search records for query and return them most relevant first.

    A blank query returns every record in its original order. limit caps the
    result after ranking, never before.
    """
    if not normalize_query(query):
        ranked = list(records)
    else:
        ranked = [m.record for m in rank_matches(query, records, fuzzy=fuzzy)]

    if limit is not None:
        ranked = ranked[:limit]
    return ranked
