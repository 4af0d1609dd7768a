"""
Logging configuration for the Site Workforce Engine
"""
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo
from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class WorkTimeFormatter(logging.Formatter):
    """Stamps records in WORK_TIMEZONE so log lines line up with the work day."""

    def __init__(self, fmt: str = LOG_FORMAT, tz_name: str = None):
        super().__init__(fmt)
        self.tz = ZoneInfo(tz_name or settings.WORK_TIMEZONE)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        if datefmt:
            return stamp.strftime(datefmt)
        return stamp.isoformat(timespec="milliseconds")


def setup_logging() -> None:
    """
    Configure root logging once: stdout handler, level from LOG_LEVEL,
    quieter uvicorn access and SQLAlchemy engine logs.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(WorkTimeFormatter())
    logging.basicConfig(level=log_level, handlers=[handler])

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, env=%s, work_tz=%s",
        settings.LOG_LEVEL, settings.APP_ENV, settings.WORK_TIMEZONE,
    )
