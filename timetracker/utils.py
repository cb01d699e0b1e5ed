from __future__ import annotations

import datetime as dt
from typing import Optional, Tuple

from zoneinfo import ZoneInfo

from .config import settings


UTC = dt.timezone.utc

DAY_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_timezone() -> dt.tzinfo:
    """Return the configured timezone, or the system timezone when none is set."""
    if settings.timezone:
        return ZoneInfo(settings.timezone)
    return dt.datetime.now().astimezone().tzinfo or UTC


def now() -> dt.datetime:
    return dt.datetime.now(UTC)


def ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_timezone())
    return value.astimezone(UTC)


def from_db_datetime(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_local(value: dt.datetime, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    return ensure_utc(value).astimezone(tz or local_timezone())


def day_key(value: dt.datetime, tz: Optional[dt.tzinfo] = None) -> str:
    return to_local(value, tz).strftime(DAY_FORMAT)


def start_of_minute(value: dt.datetime) -> dt.datetime:
    return value.replace(second=0, microsecond=0)


def start_of_day(day: dt.date, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min, tzinfo=tz or local_timezone())


def end_of_day(day: dt.date, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.max, tzinfo=tz or local_timezone())


def day_bounds(day: dt.date, tz: Optional[dt.tzinfo] = None) -> Tuple[dt.datetime, dt.datetime]:
    """Inclusive UTC bounds of a local calendar day."""
    return ensure_utc(start_of_day(day, tz)), ensure_utc(end_of_day(day, tz))


def start_of_week(day: dt.date) -> dt.date:
    return day - dt.timedelta(days=day.weekday())


def end_of_week(day: dt.date) -> dt.date:
    return start_of_week(day) + dt.timedelta(days=6)


def local_today(tz: Optional[dt.tzinfo] = None) -> dt.date:
    return now().astimezone(tz or local_timezone()).date()


def today_range(tz: Optional[dt.tzinfo] = None) -> Tuple[dt.date, dt.date]:
    today = local_today(tz)
    return today, today


def yesterday_range(tz: Optional[dt.tzinfo] = None) -> Tuple[dt.date, dt.date]:
    yesterday = local_today(tz) - dt.timedelta(days=1)
    return yesterday, yesterday


def this_week_range(tz: Optional[dt.tzinfo] = None) -> Tuple[dt.date, dt.date]:
    """Monday of the current week up to and including today."""
    today = local_today(tz)
    return start_of_week(today), today


def last_week_range(tz: Optional[dt.tzinfo] = None) -> Tuple[dt.date, dt.date]:
    last_week = local_today(tz) - dt.timedelta(days=7)
    return start_of_week(last_week), end_of_week(last_week)


def parse_day(value: str) -> dt.date:
    return dt.datetime.strptime(value.strip(), DAY_FORMAT).date()


def parse_timestamp(value: str) -> dt.datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as a local time."""
    parsed = dt.datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    return parsed.replace(tzinfo=local_timezone())


def normalize_label(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None
