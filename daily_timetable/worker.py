"""
Announcement worker - calls the daily announcement check on a fixed interval.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from daily_timetable.core.config import settings
from daily_timetable.core.errors import AnnouncementTickError
from daily_timetable.core.logging_config import setup_logging
from daily_timetable.db import SessionLocal
from daily_timetable.services.clock import load_zone
from daily_timetable.services.timetable import TimetableService
from daily_timetable.utils.identity_client import get_identity_client

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def run_tick(service: TimetableService, now: datetime) -> None:
    """One check; errors are logged so the loop keeps running."""
    try:
        announced = service.emit_daily_announcement_if_due(now)
        if announced:
            logger.info("Announced %d class(es)", len(announced))
    except AnnouncementTickError as e:
        for class_id, err in e.failures.items():
            logger.error("Announcement tick error for class %s: %s", class_id, err)
    except Exception:
        logger.exception("Announcement tick error")


def run_announcement_loop(
    service: TimetableService,
    interval: float,
    stop_event: threading.Event,
    clock_fn: Callable[[], datetime] = _utcnow,
) -> None:
    """Tick immediately, then every `interval` seconds until `stop_event` is set."""
    while not stop_event.is_set():
        run_tick(service, clock_fn())
        stop_event.wait(interval)


def main():
    """Main worker loop."""
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting announcement worker (every %ss)...", settings.ANNOUNCE_INTERVAL_SECONDS)

    service = TimetableService(
        SessionLocal,
        get_identity_client(),
        tz=load_zone(settings.TIMETABLE_TZ),
    )
    stop_event = threading.Event()

    try:
        run_announcement_loop(service, settings.ANNOUNCE_INTERVAL_SECONDS, stop_event)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        stop_event.set()


if __name__ == "__main__":
    main()
