"""
Run the saved-search alert scheduler without Celery beat.

Usage:
    python -m backend.run_scheduler            # tick forever
    python -m backend.run_scheduler --once     # single tick, then exit

Ctrl+C stops the loop after the current tick.
"""

import argparse
import logging
import signal
import threading

from backend.config.settings import get_settings
from backend.database.db import init_db, SessionLocal
from backend.services.factory import build_services

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the saved-search alert scheduler")
    parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.is_deployed:
        init_db()

    services = build_services(SessionLocal)

    if args.once:
        summary = services.scheduler.tick()
        print(f"Tick complete: {summary}")
        return summary

    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())
    services.scheduler.run_forever(stop_event)


if __name__ == "__main__":
    main()
