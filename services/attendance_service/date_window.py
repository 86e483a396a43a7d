"""Legal editing window for attendance dates.

Only the last ``EDIT_WINDOW_DAYS`` days and today may be loaded or submitted.
Callers are expected to filter dates before selecting them, but the desk checks
again before every load and submit.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import as_local_date, local_today
from services.attendance_service.exceptions import ValidationError

DateLike = Union[date, datetime]


def _window_days(days: Optional[int]) -> int:
    return get_settings().EDIT_WINDOW_DAYS if days is None else days


def max_date(now: Optional[DateLike] = None) -> date:
    """Latest editable date: today."""
    return as_local_date(now) if now is not None else local_today()


def min_date(now: Optional[DateLike] = None, *, days: Optional[int] = None) -> date:
    """Earliest editable date: ``days`` before today."""
    return max_date(now) - timedelta(days=_window_days(days))


def is_editable(
    target: DateLike, now: Optional[DateLike] = None, *, days: Optional[int] = None
) -> bool:
    target_date = as_local_date(target)
    return min_date(now, days=days) <= target_date <= max_date(now)


def ensure_editable(
    target: DateLike, now: Optional[DateLike] = None, *, days: Optional[int] = None
) -> date:
    """Return ``target`` as a date, or raise ``ValidationError`` if out of window."""
    target_date = as_local_date(target)
    if not is_editable(target_date, now, days=days):
        lower, upper = min_date(now, days=days), max_date(now)
        raise ValidationError(
            f"Attendance can only be marked between {lower:%d %b %Y} and "
            f"{upper:%d %b %Y}; got {target_date:%d %b %Y}"
        )
    return target_date
