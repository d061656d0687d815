"""Badge counts: unacknowledged new matches per user, for navigation badges."""

from sqlalchemy import func

from backend.database.models import SavedSearch


class BadgeAggregator:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    def total_new_matches(self, user_id: str) -> int:
        """Sum of new_matches_count over the user's alert-enabled searches."""
        db = self._session_factory()
        try:
            total = (
                db.query(func.coalesce(func.sum(SavedSearch.new_matches_count), 0))
                .filter(SavedSearch.user_id == str(user_id), SavedSearch.alert_enabled == True)
                .scalar()
            )
            return int(total)
        finally:
            db.close()

    def badges_by_search(self, user_id: str) -> dict[int, int]:
        """Non-zero unread counts keyed by saved search id."""
        db = self._session_factory()
        try:
            rows = (
                db.query(SavedSearch.id, SavedSearch.new_matches_count)
                .filter(
                    SavedSearch.user_id == str(user_id),
                    SavedSearch.alert_enabled == True,
                    SavedSearch.new_matches_count > 0,
                )
                .order_by(SavedSearch.id.asc())
                .all()
            )
            return {search_id: count for search_id, count in rows}
        finally:
            db.close()
