"""Matching semantics for saved searches.

``listing_matches`` is the reference predicate, ``listing_conditions`` compiles
the same rules to SQL, and ``Matcher`` evaluates a FilterSpec against whatever
listing index the engine was wired with.
"""

import logging

from sqlalchemy import func, or_

from backend.database.models import Listing
from backend.services.filter_spec import FilterSpec

logger = logging.getLogger(__name__)

# FilterSpec set field -> listing attribute
_MEMBERSHIP_FIELDS = {
    "brands": "brand",
    "fuel_types": "fuel_type",
    "transmissions": "transmission",
    "locations": "location",
    "condition": "condition",
}

_RANGE_FIELDS = {
    "price_range": "price",
    "year_range": "year",
    "mileage_range": "mileage",
}


def _lowered(values) -> set[str]:
    return {v.lower() for v in values}


def listing_matches(listing, filters: FilterSpec) -> bool:
    """Check whether a single listing satisfies every constraint in ``filters``.

    When the filter constrains a dimension but the listing lacks that data,
    treat it as a non-match (not a wildcard pass).
    """
    if filters.search_query:
        query = filters.search_query.lower()
        title = (listing.title or "").lower()
        description = (listing.description or "").lower()
        if query not in title and query not in description:
            return False

    for filter_name, attr in _MEMBERSHIP_FIELDS.items():
        wanted = getattr(filters, filter_name)
        if not wanted:
            continue
        value = getattr(listing, attr, None)
        if not value or value.lower() not in _lowered(wanted):
            return False

    for filter_name, attr in _RANGE_FIELDS.items():
        bound = getattr(filters, filter_name)
        if bound is not None and not bound.contains(getattr(listing, attr, None)):
            return False

    return True


def listing_conditions(filters: FilterSpec) -> list:
    """Translate ``filters`` into SQLAlchemy clauses over ``Listing``, AND-ed by the caller."""
    clauses = [Listing.is_active == True]

    if filters.search_query:
        pattern = f"%{_escape_like(filters.search_query.lower())}%"
        clauses.append(
            or_(
                func.lower(Listing.title).like(pattern, escape="\\"),
                func.lower(func.coalesce(Listing.description, "")).like(pattern, escape="\\"),
            )
        )

    for filter_name, attr in _MEMBERSHIP_FIELDS.items():
        wanted = getattr(filters, filter_name)
        if wanted:
            column = getattr(Listing, attr)
            clauses.append(func.lower(column).in_(sorted(_lowered(wanted))))

    for filter_name, attr in _RANGE_FIELDS.items():
        bound = getattr(filters, filter_name)
        if bound is not None:
            clauses.append(getattr(Listing, attr).between(bound.min, bound.max))

    return clauses


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Matcher:
    """Evaluates saved-search filters against a listing index.

    The index must expose ``query(FilterSpec) -> set of listing ids`` and raise
    ``IndexUnavailableError`` when it cannot answer.
    """

    def __init__(self, index):
        self.index = index

    def evaluate(self, filters: FilterSpec) -> frozenset:
        matches = frozenset(self.index.query(filters))
        logger.debug("Evaluated filters %s: %d matches", filters.describe() or ["<all>"], len(matches))
        return matches
