"""
Civil-calendar helpers.

All "today", weekday and announce-time decisions are made in one configured
zone so that dates never drift by a day around midnight UTC.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo


def load_zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_local(now: datetime, tz: tzinfo) -> datetime:
    # naive instants are taken to already be local wall-clock time
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def local_date(now: datetime, tz: tzinfo) -> date:
    return to_local(now, tz).date()


def weekday_number(day: date) -> int:
    """Monday = 1 ... Sunday = 7."""
    return day.isoweekday()


def _wall_clock(now: datetime, tz: tzinfo) -> time:
    return to_local(now, tz).time().replace(tzinfo=None)


def _announce_time(announce_at: time) -> time:
    return announce_at.replace(tzinfo=None, microsecond=0)


def reached_announce_time(now: datetime, announce_at: time, tz: tzinfo) -> bool:
    """True once local time-of-day is at or after `announce_at`."""
    return _wall_clock(now, tz) >= _announce_time(announce_at)


def past_announce_time(now: datetime, announce_at: time, tz: tzinfo) -> bool:
    """True only strictly after `announce_at`."""
    return _wall_clock(now, tz) > _announce_time(announce_at)
