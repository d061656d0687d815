"""Saved search store: validated CRUD over the saved_searches table."""

import logging
from datetime import datetime

from backend.database.models import AlertFrequency, SavedSearch
from backend.services.errors import AuthorizationError, NotFoundError, ValidationError
from backend.services.filter_spec import FilterSpec
from backend.services.search_locks import SearchWriter

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50

# Fields the owner may change. Checkpoint fields belong to the matching engine.
OWNER_FIELDS = ("name", "filters", "alert_enabled", "alert_frequency")


def search_filters(search: SavedSearch) -> FilterSpec:
    """Rebuild the FilterSpec stored on a saved search row."""
    return FilterSpec.from_dict(search.filters)


def check_owner(search: SavedSearch, user_id: str) -> None:
    if search.user_id != str(user_id):
        raise AuthorizationError(f"Saved search {search.id} belongs to another user")


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Search name cannot be empty")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Search name must be at most {MAX_NAME_LENGTH} characters")
    return name


def _coerce_filters(filters) -> FilterSpec:
    if isinstance(filters, FilterSpec):
        return filters
    return FilterSpec.from_dict(filters)


def _coerce_frequency(value) -> str:
    try:
        return AlertFrequency(value).value
    except ValueError:
        raise ValidationError(f"alert_frequency must be one of: instant, daily, weekly (got {value!r})")


def _coerce_flag(value) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("alert_enabled must be true or false")
    return value


class SavedSearchStore:
    """Creates, reads, updates and deletes saved searches on behalf of their owners."""

    def __init__(self, session_factory, writer: SearchWriter, clock=datetime.utcnow):
        self._session_factory = session_factory
        self.writer = writer
        self.clock = clock

    def create(
        self,
        user_id: str,
        name: str,
        filters,
        alert_enabled: bool = True,
        alert_frequency: str = AlertFrequency.DAILY.value,
    ) -> SavedSearch:
        """Persist a new saved search. Raises ValidationError before anything is written."""
        if user_id is None or not str(user_id).strip():
            raise ValidationError("user_id is required")
        name = _clean_name(name)
        spec = _coerce_filters(filters)
        alert_enabled = _coerce_flag(alert_enabled)
        alert_frequency = _coerce_frequency(alert_frequency)

        now = self.clock()
        search = SavedSearch(
            user_id=str(user_id),
            name=name,
            filters=spec.to_dict(),
            filters_version=1,
            alert_enabled=alert_enabled,
            alert_frequency=alert_frequency,
            known_listing_ids=[],
            pending_digest_ids=[],
            total_matches=0,
            new_matches_count=0,
            last_checked=now,
            created_at=now,
            updated_at=now,
        )
        db = self._session_factory()
        try:
            db.add(search)
            db.commit()
            db.refresh(search)
            db.expunge(search)
        finally:
            db.close()

        logger.info("Saved search %s created for user %s", search.id, search.user_id)
        return search

    def get(self, search_id: int, user_id: str | None = None) -> SavedSearch:
        """Fetch one saved search. When ``user_id`` is given, ownership is enforced."""
        db = self._session_factory()
        try:
            search = db.get(SavedSearch, search_id)
            if search is None:
                raise NotFoundError(f"Saved search {search_id} not found")
            if user_id is not None:
                check_owner(search, user_id)
            db.expunge(search)
            return search
        finally:
            db.close()

    def list_by_user(self, user_id: str) -> list[SavedSearch]:
        """All of a user's saved searches, in the order they were created."""
        db = self._session_factory()
        try:
            searches = (
                db.query(SavedSearch)
                .filter(SavedSearch.user_id == str(user_id))
                .order_by(SavedSearch.id.asc())
                .all()
            )
            db.expunge_all()
            return searches
        finally:
            db.close()

    def list_alerting(self) -> list[SavedSearch]:
        """Every saved search with alerts enabled, across all users."""
        db = self._session_factory()
        try:
            searches = (
                db.query(SavedSearch)
                .filter(SavedSearch.alert_enabled == True)
                .order_by(SavedSearch.id.asc())
                .all()
            )
            db.expunge_all()
            return searches
        finally:
            db.close()

    def update(self, search_id: int, user_id: str, patch: dict) -> SavedSearch:
        """Apply an owner edit.

        Changing ``filters`` to a different value starts the search over: the
        checkpoint and unread count are cleared and ``filters_version`` moves on,
        which makes any check still running against the old filters discard its
        result. Re-saving equal filters leaves the checkpoint alone.
        """
        unknown = set(patch) - set(OWNER_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        changes = {}
        if "name" in patch:
            changes["name"] = _clean_name(patch["name"])
        if "filters" in patch:
            changes["filters"] = _coerce_filters(patch["filters"])
        if "alert_enabled" in patch:
            changes["alert_enabled"] = _coerce_flag(patch["alert_enabled"])
        if "alert_frequency" in patch:
            changes["alert_frequency"] = _coerce_frequency(patch["alert_frequency"])

        def _mutate(search, db):
            check_owner(search, user_id)
            if "name" in changes:
                search.name = changes["name"]
            if "filters" in changes and changes["filters"] != search_filters(search):
                search.filters = changes["filters"].to_dict()
                search.filters_version += 1
                search.known_listing_ids = []
                search.pending_digest_ids = []
                search.new_matches_count = 0
                logger.info("Saved search %s filters changed, checkpoint reset", search.id)
            if "alert_enabled" in changes:
                search.alert_enabled = changes["alert_enabled"]
            if "alert_frequency" in changes:
                search.alert_frequency = changes["alert_frequency"]
            search.updated_at = self.clock()
            return search

        return self.writer.apply(search_id, _mutate)

    def delete(self, search_id: int, user_id: str) -> None:
        """Hard delete. Unknown ids are a no-op; another user's search is not."""

        def _mutate(search, db):
            check_owner(search, user_id)
            db.delete(search)

        try:
            self.writer.apply(search_id, _mutate)
        except NotFoundError:
            logger.debug("Delete of unknown saved search %s ignored", search_id)
            return
        self.writer.locks.discard(search_id)
        logger.info("Saved search %s deleted by user %s", search_id, user_id)
