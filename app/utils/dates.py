"""
Calendar-day helpers

Inventory is indexed by calendar date, so every timestamp that reaches
the engine is reduced to the day it falls on in the listing's time zone.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from ..config import settings

DateLike = Union[date, datetime]


def to_calendar_day(value: DateLike, time_zone: Optional[str] = None) -> date:
    """
    Reduce a date or datetime to a calendar day.

    Aware datetimes are converted to `time_zone` (DEFAULT_TIME_ZONE when
    not given) first; naive datetimes are already listing-local and only
    lose their time part.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(time_zone or settings.default_time_zone))
        return value.date()
    return value


def date_range(start: date, end: date) -> List[date]:
    """Dates from start (inclusive) to end (exclusive), in order."""
    days = []
    current = start
    while current < end:
        days.append(current)
        current += timedelta(days=1)
    return days


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def _same_kind(a: DateLike, b: DateLike) -> bool:
    if isinstance(a, datetime) and isinstance(b, datetime):
        return (a.tzinfo is None) == (b.tzinfo is None)
    return not isinstance(a, datetime) and not isinstance(b, datetime)


def is_before(a: DateLike, b: DateLike, time_zone: Optional[str] = None) -> bool:
    """
    True if `a` comes before `b`.

    Values of the same kind compare directly. Mixed values (date with
    datetime, naive with aware) compare on their calendar days in
    `time_zone`.
    """
    if _same_kind(a, b):
        return a < b
    return to_calendar_day(a, time_zone) < to_calendar_day(b, time_zone)
