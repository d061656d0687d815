"""Wires the saved-search engine components together."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from backend.config.settings import Settings, get_settings
from backend.services.alert_scheduler import AlertScheduler
from backend.services.badge_service import BadgeAggregator
from backend.services.delta_tracker import DeltaTracker
from backend.services.listing_index import HttpListingIndex, ListingIndex, SqlListingIndex
from backend.services.matcher import Matcher
from backend.services.notification_sink import LoggingNotificationSink, NotificationSink
from backend.services.saved_search_service import SavedSearchStore
from backend.services.search_locks import SearchLockRegistry, SearchWriter


@dataclass
class SearchServices:
    store: SavedSearchStore
    tracker: DeltaTracker
    scheduler: AlertScheduler
    badges: BadgeAggregator
    index: ListingIndex
    sink: NotificationSink


def build_listing_index(session_factory, settings: Settings) -> ListingIndex:
    if settings.listing_index_backend == "http":
        return HttpListingIndex(settings.listing_index_url, timeout=settings.listing_index_timeout_seconds)
    return SqlListingIndex(session_factory)


def build_services(
    session_factory,
    index: ListingIndex | None = None,
    sink: NotificationSink | None = None,
    settings: Settings | None = None,
    clock=datetime.utcnow,
) -> SearchServices:
    """Assemble the engine around one session factory. Components share a lock registry."""
    settings = settings or get_settings()
    # An empty in-memory index has len() == 0, so test against None
    if index is None:
        index = build_listing_index(session_factory, settings)
    if sink is None:
        sink = LoggingNotificationSink()

    writer = SearchWriter(session_factory, SearchLockRegistry(), attempts=settings.checkpoint_write_attempts)
    store = SavedSearchStore(session_factory, writer, clock=clock)
    tracker = DeltaTracker(session_factory, Matcher(index), writer, clock=clock)
    scheduler = AlertScheduler(
        store,
        tracker,
        writer,
        sink,
        daily_window=timedelta(hours=settings.daily_digest_hours),
        weekly_window=timedelta(days=settings.weekly_digest_days),
        max_workers=settings.scheduler_max_workers,
        tick_seconds=settings.alert_tick_seconds,
        clock=clock,
    )
    return SearchServices(
        store=store,
        tracker=tracker,
        scheduler=scheduler,
        badges=BadgeAggregator(session_factory),
        index=index,
        sink=sink,
    )
