"""Serialised read-modify-write access to a single saved search row.

Within a process, each search id gets its own re-entrant lock. Across
processes the ``revision`` version column makes a conflicting commit fail
with ``StaleDataError``; the write is then re-read and re-applied.
"""

import logging
import threading

from sqlalchemy.orm.exc import StaleDataError
from tenacity import Retrying, stop_after_attempt, retry_if_exception_type

from backend.database.models import SavedSearch
from backend.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class SearchLockRegistry:
    """Hands out one lock per saved search id."""

    def __init__(self):
        self._locks: dict[int, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, search_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(search_id)
            if lock is None:
                lock = self._locks[search_id] = threading.RLock()
            return lock

    def discard(self, search_id: int) -> None:
        with self._guard:
            self._locks.pop(search_id, None)


class SearchWriter:
    """Applies a mutation to one saved search under its lock and commits it."""

    def __init__(self, session_factory, locks: SearchLockRegistry, attempts: int = 3):
        self._session_factory = session_factory
        self.locks = locks
        self.attempts = attempts

    def apply(self, search_id: int, mutate):
        """Load the search, call ``mutate(search, db)`` and commit.

        Raises NotFoundError if the row does not exist. Whatever ``mutate``
        raises propagates after a rollback. A SavedSearch returned by
        ``mutate`` comes back refreshed and detached from its session.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            retry=retry_if_exception_type(StaleDataError),
            reraise=True,
        )
        with self.locks.lock_for(search_id):
            for attempt in retrying:
                with attempt:
                    return self._apply_once(search_id, mutate)

    def _apply_once(self, search_id: int, mutate):
        db = self._session_factory()
        try:
            search = db.get(SavedSearch, search_id)
            if search is None:
                raise NotFoundError(f"Saved search {search_id} not found")
            result = mutate(search, db)
            db.commit()
            if isinstance(result, SavedSearch):
                db.refresh(result)
                db.expunge(result)
            return result
        except StaleDataError:
            db.rollback()
            logger.info("Concurrent write to saved search %s, retrying", search_id)
            raise
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
