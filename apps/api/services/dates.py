"""
Calendar-day helpers.

Everything in this app that is a "day" (experiment start, log entry date,
last practice date) is a calendar date with no time of day. Strings are split
into year/month/day and built as local dates; they are never parsed as UTC
instants, which is what used to shift a day near midnight.

No timezone database and no DST handling beyond truncating to the day.
"""

from datetime import date, datetime
from typing import Union

DateLike = Union[date, datetime, str]


def parse_date_only(value: DateLike) -> date:
    """Coerce a date, datetime or 'YYYY-MM-DD' string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    # Tolerate a trailing time component ("2026-01-10T08:00:00Z") by keeping the day part only
    day_part = value.strip().split("T", 1)[0]
    parts = day_part.split("-")
    if len(parts) != 3:
        raise ValueError(f"Expected YYYY-MM-DD, got {value!r}")
    try:
        year, month, day = (int(p) for p in parts)
    except ValueError:
        raise ValueError(f"Expected YYYY-MM-DD, got {value!r}")
    return date(year, month, day)


def days_between(start: DateLike, end: DateLike) -> int:
    """Signed number of whole days from start to end (negative if end is earlier)."""
    return (parse_date_only(end) - parse_date_only(start)).days


def today_local() -> date:
    return date.today()


def to_date_string(value: DateLike) -> str:
    return parse_date_only(value).isoformat()
