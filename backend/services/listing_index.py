"""Listing index adapters consumed by the matcher.

The engine only needs ``query(filters)`` and ``listing_updated_at(listing_id)``.
Three implementations ship: an in-memory index for tests and local runs, a
SQL index over the ``listings`` table, and an HTTP client for a remote search
service.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
import threading

import httpx
from sqlalchemy.exc import SQLAlchemyError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from backend.database.models import Listing
from backend.services.errors import IndexUnavailableError
from backend.services.filter_spec import FilterSpec
from backend.services.matcher import listing_matches, listing_conditions

logger = logging.getLogger(__name__)


class ListingIndex(ABC):
    """Read-only query interface over the live listing corpus. Safe for concurrent reads."""

    @abstractmethod
    def query(self, filters: FilterSpec) -> set[str]:
        """Return the ids of all listings matching ``filters``."""
        ...

    @abstractmethod
    def listing_updated_at(self, listing_id: str) -> datetime | None:
        """Return when a listing last changed, or None if it is unknown."""
        ...


@dataclass(frozen=True)
class ListingRecord:
    id: str
    title: str
    brand: str
    price: float
    year: int
    description: str | None = None
    mileage: int | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    location: str | None = None
    condition: str = "Used"
    updated_at: datetime = field(default_factory=datetime.utcnow)


class InMemoryListingIndex(ListingIndex):
    """Dictionary-backed index. ``available = False`` simulates an outage."""

    def __init__(self, listings=None):
        self._listings: dict[str, ListingRecord] = {}
        self._lock = threading.Lock()
        self.available = True
        for listing in listings or []:
            self.add(listing)

    def add(self, listing: ListingRecord) -> None:
        with self._lock:
            self._listings[listing.id] = listing

    def update(self, listing_id: str, **changes) -> None:
        with self._lock:
            current = self._listings[listing_id]
            changes.setdefault("updated_at", datetime.utcnow())
            self._listings[listing_id] = replace(current, **changes)

    def remove(self, listing_id: str) -> None:
        with self._lock:
            self._listings.pop(listing_id, None)

    def __len__(self) -> int:
        return len(self._listings)

    def query(self, filters: FilterSpec) -> set[str]:
        if not self.available:
            raise IndexUnavailableError("In-memory listing index is offline")
        with self._lock:
            snapshot = list(self._listings.values())
        return {listing.id for listing in snapshot if listing_matches(listing, filters)}

    def listing_updated_at(self, listing_id: str) -> datetime | None:
        if not self.available:
            raise IndexUnavailableError("In-memory listing index is offline")
        listing = self._listings.get(listing_id)
        return listing.updated_at if listing else None


class SqlListingIndex(ListingIndex):
    """Index backed by the ``listings`` table. Inactive (sold/delisted) rows never match."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def query(self, filters: FilterSpec) -> set[str]:
        db = self._session_factory()
        try:
            rows = db.query(Listing.id).filter(*listing_conditions(filters)).all()
            return {row[0] for row in rows}
        except SQLAlchemyError as exc:
            logger.exception("Listing query failed")
            raise IndexUnavailableError("Listing table query failed") from exc
        finally:
            db.close()

    def listing_updated_at(self, listing_id: str) -> datetime | None:
        db = self._session_factory()
        try:
            row = db.query(Listing.updated_at).filter(Listing.id == listing_id).first()
            return row[0] if row else None
        except SQLAlchemyError as exc:
            raise IndexUnavailableError("Listing table query failed") from exc
        finally:
            db.close()


class HttpListingIndex(ListingIndex):
    """Client for a remote listing search service.

    POST {base_url}/query with the filter JSON returns {"ids": [...]};
    GET {base_url}/listings/{id} returns {"updated_at": "<iso8601>"}.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def query(self, filters: FilterSpec) -> set[str]:
        try:
            payload = self._post_query(filters.to_dict())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Listing search service query failed: %s", exc)
            raise IndexUnavailableError("Listing search service unavailable") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("ids", []), list):
            raise IndexUnavailableError("Listing search service returned an unexpected response")
        return {str(listing_id) for listing_id in payload.get("ids", [])}

    def listing_updated_at(self, listing_id: str) -> datetime | None:
        try:
            resp = self._client.get(f"{self.base_url}/listings/{listing_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise IndexUnavailableError("Listing search service unavailable") from exc
        if not isinstance(payload, dict):
            raise IndexUnavailableError("Listing search service returned an unexpected response")
        raw = payload.get("updated_at")
        try:
            return datetime.fromisoformat(raw) if raw else None
        except (TypeError, ValueError) as exc:
            raise IndexUnavailableError(f"Bad updated_at for listing {listing_id}: {raw!r}") from exc

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.HTTPStatusError)),
        reraise=True,
    )
    def _post_query(self, body: dict) -> dict:
        resp = self._client.post(f"{self.base_url}/query", json=body)
        resp.raise_for_status()
        return resp.json()
