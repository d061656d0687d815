"""Celery tasks for saved-search alert checks."""

import logging
from functools import lru_cache

from backend.celery_app import app
from backend.database.db import SessionLocal
from backend.services.errors import IndexUnavailableError, NotFoundError
from backend.services.factory import SearchServices, build_services

logger = logging.getLogger(__name__)


@lru_cache
def worker_services() -> SearchServices:
    """Services shared by every task in this worker process.

    One instance keeps a single listing index client and one lock registry,
    so tasks running in the same worker serialise on the same per-search locks.
    """
    return build_services(SessionLocal)


@app.task(bind=True, max_retries=3, default_retry_delay=60)
def run_alert_tick(self):
    """Check every due saved search once. Runs on the beat schedule."""
    try:
        services = worker_services()
        return services.scheduler.tick()
    except Exception as exc:
        logger.exception("Alert tick task failed")
        raise self.retry(exc=exc)


@app.task(bind=True, max_retries=5, default_retry_delay=30)
def check_saved_search(self, search_id: int):
    """Check one saved search now, ignoring its cadence.

    A listing index outage is retried; a search deleted before the task runs
    is dropped.
    """
    services = worker_services()
    try:
        delta = services.scheduler.check_now(search_id)
    except NotFoundError:
        logger.info("Saved search %s no longer exists, check dropped", search_id)
        return {"status": "missing", "search_id": search_id}
    except IndexUnavailableError as exc:
        logger.warning("Listing index unavailable for saved search %s, retrying", search_id)
        raise self.retry(exc=exc)

    if delta is None:
        return {"status": "discarded", "search_id": search_id}
    return {
        "status": "checked",
        "search_id": search_id,
        "new_count": len(delta.new_listing_ids),
        "total_matches": delta.total_matches,
    }
