"""Date parsing helpers.

All temporal attributes are reduced to POSIX timestamps (float seconds, UTC)
so they can be compared and binary-searched like any other number.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from cvestore.constants import TimeGrouping

DateLike = Union[str, date, datetime]

_DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _to_datetime(value: DateLike) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[-1] in "Zz":
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_timestamp(value: Optional[DateLike]) -> Optional[float]:
    """Parse an ISO-8601 string, date, or datetime into a UTC timestamp.

    Naive values are taken to be UTC.

    Returns:
        Seconds since the epoch, or None when the value is absent or unparsable.
    """
    if value is None:
        return None
    dt = _to_datetime(value)
    if dt is None:
        return None
    return dt.timestamp()


def is_date_only(value: DateLike) -> bool:
    """Return True for a calendar date without a time component."""
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and bool(_DATE_ONLY_PATTERN.match(value.strip()))


def parse_range_end(value: Optional[DateLike]) -> Optional[float]:
    """Parse the upper bound of a date range.

    A bare date ("2024-06-15") covers the whole day, so the bound is moved
    to the last microsecond of that day.
    """
    if value is None:
        return None
    if is_date_only(value):
        dt = _to_datetime(value)
        if dt is None:
            return None
        return datetime.combine(dt.date(), time.max, tzinfo=timezone.utc).timestamp()
    return parse_timestamp(value)


def period_key(timestamp: float, grouping: TimeGrouping) -> str:
    """Bucket a timestamp into a zero-padded period key.

    Examples:
        DAY   -> "2024-06-15"
        MONTH -> "2024-06"
        YEAR  -> "2024"
    """
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    if grouping == TimeGrouping.DAY:
        return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
    if grouping == TimeGrouping.MONTH:
        return f"{dt.year:04d}-{dt.month:02d}"
    return f"{dt.year:04d}"
