"""Delta tracking: which listings are new for a saved search since its checkpoint."""

import logging
from dataclasses import dataclass
from datetime import datetime

from backend.database.models import SavedSearch
from backend.services.errors import NotFoundError
from backend.services.filter_spec import FilterSpec
from backend.services.matcher import Matcher
from backend.services.saved_search_service import check_owner, search_filters
from backend.services.search_locks import SearchWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchDelta:
    """Outcome of one check. Transient, never persisted."""

    search_id: int
    user_id: str
    new_listing_ids: frozenset
    total_matches: int
    checked_at: datetime
    filters_version: int

    @property
    def has_new_matches(self) -> bool:
        return bool(self.new_listing_ids)


class DeltaTracker:
    """Runs a saved search against the index and advances its checkpoint.

    ``known_listing_ids`` is a seen-ledger: it only grows, so a listing is
    announced as new at most once per filter definition. Listings that drop
    out of the corpus stay in the ledger; ``total_matches`` always reflects the
    latest evaluation only.
    """

    def __init__(self, session_factory, matcher: Matcher, writer: SearchWriter, clock=datetime.utcnow):
        self._session_factory = session_factory
        self.matcher = matcher
        self.writer = writer
        self.clock = clock

    def _snapshot(self, search_id: int, user_id: str | None = None) -> tuple[FilterSpec, int]:
        db = self._session_factory()
        try:
            search = db.get(SavedSearch, search_id)
            if search is None:
                raise NotFoundError(f"Saved search {search_id} not found")
            if user_id is not None:
                check_owner(search, user_id)
            return search_filters(search), search.filters_version
        finally:
            db.close()

    def current_matches(self, search_id: int, user_id: str | None = None) -> frozenset:
        """Live match set for a search, without touching its checkpoint."""
        filters, _ = self._snapshot(search_id, user_id)
        return self.matcher.evaluate(filters)

    def check(self, search_id: int, user_id: str | None = None) -> MatchDelta | None:
        """Evaluate the search and record newly seen listings.

        Returns None when the search was deleted or its filters changed while
        the index was being queried; nothing is written in that case.
        IndexUnavailableError propagates and leaves the row untouched.
        """
        filters, version = self._snapshot(search_id, user_id)
        current = self.matcher.evaluate(filters)

        def _apply(search, db):
            if search.filters_version != version:
                return None
            known = set(search.known_listing_ids or [])
            new_ids = current - known
            now = self.clock()

            search.total_matches = len(current)
            search.new_matches_count = (search.new_matches_count or 0) + len(new_ids)
            if new_ids:
                search.known_listing_ids = sorted(known | new_ids)
            search.last_checked = now

            return MatchDelta(
                search_id=search.id,
                user_id=search.user_id,
                new_listing_ids=frozenset(new_ids),
                total_matches=len(current),
                checked_at=now,
                filters_version=version,
            )

        try:
            delta = self.writer.apply(search_id, _apply)
        except NotFoundError:
            logger.info("Saved search %s was deleted mid-check, result discarded", search_id)
            return None

        if delta is None:
            logger.info("Saved search %s filters changed mid-check, result discarded", search_id)
            return None

        logger.info(
            "Checked saved search %s: %d new, %d total",
            search_id, len(delta.new_listing_ids), delta.total_matches,
        )
        return delta

    def mark_as_checked(self, search_id: int, user_id: str | None = None) -> SavedSearch:
        """Acknowledge new matches. The checkpoint and total are left as they are."""

        def _acknowledge(search, db):
            if user_id is not None:
                check_owner(search, user_id)
            search.new_matches_count = 0
            return search

        return self.writer.apply(search_id, _acknowledge)
