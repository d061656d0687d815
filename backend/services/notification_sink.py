"""Notification sinks: where match alerts are handed off for delivery."""

import logging
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Receives new-match alerts. Delivery guarantees are the sink's concern."""

    @abstractmethod
    def notify(self, user_id: str, search_id: int, new_listing_ids: frozenset) -> None:
        ...


class LoggingNotificationSink(NotificationSink):
    """Default sink: records the hand-off in the application log."""

    def notify(self, user_id: str, search_id: int, new_listing_ids: frozenset) -> None:
        logger.info(
            "Match alert for user %s, saved search %s: %d listing(s) %s",
            user_id, search_id, len(new_listing_ids), sorted(new_listing_ids),
        )


class InMemoryNotificationSink(NotificationSink):
    """Keeps every notification in a list."""

    def __init__(self):
        self.sent: list[tuple[str, int, frozenset]] = []
        self._lock = threading.Lock()

    def notify(self, user_id: str, search_id: int, new_listing_ids: frozenset) -> None:
        with self._lock:
            self.sent.append((user_id, search_id, frozenset(new_listing_ids)))

    def for_search(self, search_id: int) -> list[frozenset]:
        return [ids for _, sid, ids in self.sent if sid == search_id]
