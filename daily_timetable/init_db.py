# daily_timetable/init_db.py
import logging

from daily_timetable.core.config import settings
from daily_timetable.core.logging_config import setup_logging
from daily_timetable.db import Base, engine
from daily_timetable import models  # noqa: F401  registers tables on Base

logger = logging.getLogger(__name__)


def init_db():
    setup_logging(settings.LOG_LEVEL)
    logger.info("Creating tables in database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Done.")


if __name__ == "__main__":
    init_db()
