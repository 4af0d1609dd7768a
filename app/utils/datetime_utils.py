"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- The work date ("today") is the calendar date in settings.WORK_TIMEZONE, computed
  by one Clock and compared by date equality everywhere.
- API responses expose datetimes in the work time zone.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def work_tz() -> ZoneInfo:
    return ZoneInfo(settings.WORK_TIMEZONE)


def to_work_tz(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the work time zone. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(work_tz())


def iso_work_tz(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 with the work time zone offset. Use for API response datetime fields."""
    if dt is None:
        return None
    return to_work_tz(dt).isoformat()


def seconds_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole seconds from start to end, never negative; 0 when either side is missing."""
    if start is None or end is None:
        return 0
    return max(0, int((ensure_utc(end) - ensure_utc(start)).total_seconds()))


class Clock:
    """
    Source of "now" and "today" for the engine.

    One instance is injected into every service call so that all reads and
    writes of a request agree on the same work date.
    """

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or settings.WORK_TIMEZONE)

    def now(self) -> datetime:
        return now_utc()

    def work_date(self, at: Optional[datetime] = None) -> date:
        """Calendar date in the work time zone for `at` (default now)."""
        instant = ensure_utc(at) if at is not None else self.now()
        return instant.astimezone(self.tz).date()

    def today(self) -> date:
        return self.work_date()


class FixedClock(Clock):
    """Clock pinned to a given instant; used by tests and replay tooling."""

    def __init__(self, instant: datetime, tz_name: Optional[str] = None):
        super().__init__(tz_name)
        self.instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> "FixedClock":
        self.instant = self.instant + timedelta(**delta)
        return self
