"""Datetime utilities for timezone-aware timestamps and local calendar dates.

Usage:
    from libs.common.datetime_utils import local_today

    if selected_date > local_today():
        ...
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from libs.common.config import get_settings


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Return the current time in the configured (or given) timezone."""
    return datetime.now(ZoneInfo(tz_name or get_settings().TIMEZONE))


def local_today(tz_name: Optional[str] = None) -> date:
    """Return today's calendar date in the configured (or given) timezone."""
    return local_now(tz_name).date()


def as_local_date(value: "date | datetime", tz_name: Optional[str] = None) -> date:
    """Collapse a date or datetime to a calendar date.

    Aware datetimes are converted to the configured timezone first; naive
    datetimes are taken at face value.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz_name or get_settings().TIMEZONE))
        return value.date()
    return value
