"""Alert scheduler: re-checks saved searches on their cadence and dispatches alerts.

Cadence (measured from ``last_checked``):
    instant -> every tick
    daily   -> 24 hours
    weekly  -> 7 days

Instant searches are notified on every check that finds something new.
Daily and weekly searches are checked as soon as their cadence elapses, so
badge counts stay current, but their new listings are collected in
``pending_digest_ids`` and sent as a single digest once per window, gated on
``last_notified_at``.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta

from backend.database.models import AlertFrequency, SavedSearch
from backend.services.delta_tracker import DeltaTracker, MatchDelta
from backend.services.errors import IndexUnavailableError, NotFoundError
from backend.services.notification_sink import NotificationSink
from backend.services.saved_search_service import SavedSearchStore
from backend.services.search_locks import SearchWriter

logger = logging.getLogger(__name__)


class AlertScheduler:
    def __init__(
        self,
        store: SavedSearchStore,
        tracker: DeltaTracker,
        writer: SearchWriter,
        sink: NotificationSink,
        daily_window: timedelta = timedelta(hours=24),
        weekly_window: timedelta = timedelta(days=7),
        max_workers: int = 8,
        tick_seconds: int = 60,
        clock=datetime.utcnow,
    ):
        self.store = store
        self.tracker = tracker
        self.writer = writer
        self.sink = sink
        self.daily_window = daily_window
        self.weekly_window = weekly_window
        self.max_workers = max_workers
        self.tick_seconds = tick_seconds
        self.clock = clock

    def window_for(self, frequency: str) -> timedelta | None:
        """Minimum time between checks (and between digests). None means every tick."""
        if frequency == AlertFrequency.DAILY.value:
            return self.daily_window
        if frequency == AlertFrequency.WEEKLY.value:
            return self.weekly_window
        return None

    def is_due(self, search: SavedSearch, now: datetime) -> bool:
        if not search.alert_enabled:
            return False
        window = self.window_for(search.alert_frequency)
        if window is None:
            return True
        return now - search.last_checked >= window

    def digest_window_open(self, search: SavedSearch, now: datetime) -> bool:
        window = self.window_for(search.alert_frequency)
        if window is None:
            return True
        since = search.last_notified_at or search.created_at
        return now - since >= window

    def tick(self, now: datetime | None = None) -> dict:
        """Check every due search once. One search failing never stops the others."""
        now = now or self.clock()
        due = [s.id for s in self.store.list_alerting() if self.is_due(s, now)]
        summary = {"due": len(due), "checked": 0, "notified": 0, "failed": 0, "discarded": 0}
        if not due:
            return summary

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(due))) as pool:
            futures = [pool.submit(self._run_check, search_id) for search_id in due]
            for future in as_completed(futures):
                outcome = future.result()
                if outcome == "notified":
                    summary["checked"] += 1
                summary[outcome] += 1

        logger.info(
            "Alert tick: %d due, %d checked, %d notified, %d failed, %d discarded",
            summary["due"], summary["checked"], summary["notified"], summary["failed"], summary["discarded"],
        )
        return summary

    def check_now(self, search_id: int, user_id: str | None = None) -> MatchDelta | None:
        """User-triggered check that ignores cadence. Errors reach the caller."""
        delta = self.tracker.check(search_id, user_id)
        if delta is not None:
            self._dispatch(delta)
        return delta

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        """Tick every ``tick_seconds`` until ``stop_event`` is set."""
        stop_event = stop_event or threading.Event()
        logger.info("Alert scheduler started (tick every %ss)", self.tick_seconds)
        while not stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Alert tick failed")
            stop_event.wait(self.tick_seconds)
        logger.info("Alert scheduler stopped")

    def _run_check(self, search_id: int) -> str:
        try:
            delta = self.tracker.check(search_id)
        except IndexUnavailableError as exc:
            logger.warning("Listing index unavailable for saved search %s, will retry: %s", search_id, exc)
            return "failed"
        except NotFoundError:
            return "discarded"
        except Exception:
            logger.exception("Check failed for saved search %s", search_id)
            return "failed"

        if delta is None:
            return "discarded"
        try:
            return "notified" if self._dispatch(delta) else "checked"
        except Exception:
            logger.exception("Dispatch failed for saved search %s", search_id)
            return "checked"

    def _dispatch(self, delta: MatchDelta) -> bool:
        """Forward a delta to the sink per the search's frequency. Returns True if notified.

        A notification is claimed in the same locked write that decides to
        send it: ``last_notified_at`` moves to now and pending digest ids are
        taken off the row, so an overlapping check finds the window closed.
        If the sink fails the claim is rolled back.
        """
        now = delta.checked_at

        def _plan(search, db):
            if search.filters_version != delta.filters_version or not search.alert_enabled:
                return None
            if search.alert_frequency == AlertFrequency.INSTANT.value:
                if not delta.new_listing_ids:
                    return None
                to_send = delta.new_listing_ids
            else:
                pending = set(search.pending_digest_ids or [])
                if not delta.new_listing_ids <= pending:
                    pending |= delta.new_listing_ids
                    search.pending_digest_ids = sorted(pending)
                if not pending or not self.digest_window_open(search, now):
                    return None
                to_send = frozenset(pending)
                search.pending_digest_ids = []
            claim = (to_send, search.last_notified_at)
            search.last_notified_at = now
            return claim

        try:
            planned = self.writer.apply(delta.search_id, _plan)
        except NotFoundError:
            return False
        if planned is None:
            return False
        to_send, previous_notified_at = planned

        try:
            self.sink.notify(delta.user_id, delta.search_id, to_send)
        except Exception:
            logger.exception("Notification sink failed for saved search %s", delta.search_id)
            self._release_claim(delta, to_send, previous_notified_at)
            return False

        logger.info("Notified user %s of %d new match(es) for saved search %s",
                    delta.user_id, len(to_send), delta.search_id)
        return True

    def _release_claim(self, delta: MatchDelta, to_send: frozenset, previous_notified_at) -> None:
        """Put undelivered digest ids back and reopen the window."""

        def _restore(search, db):
            if search.filters_version != delta.filters_version:
                return None
            if search.alert_frequency != AlertFrequency.INSTANT.value:
                search.pending_digest_ids = sorted(set(search.pending_digest_ids or []) | to_send)
            if search.last_notified_at == delta.checked_at:
                search.last_notified_at = previous_notified_at
            return None

        try:
            self.writer.apply(delta.search_id, _restore)
        except NotFoundError:
            logger.debug("Saved search %s deleted before its claim was released", delta.search_id)
