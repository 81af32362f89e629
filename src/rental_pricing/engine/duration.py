"""
Rental duration - turns a pickup/return pair into billable days.
"""
import math
from datetime import date, datetime, timedelta
from typing import Union

from .exceptions import InvalidInputError


DateLike = Union[datetime, date, str]

ONE_DAY = timedelta(days=1)


def parse_datetime(value: DateLike, field_name: str = "date") -> datetime:
    """Parse a datetime, date or ISO 8601 string."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        # fromisoformat() before 3.11 does not accept a trailing Z
        return datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    except ValueError:
        raise InvalidInputError(f"{field_name} is not a valid date: {value!r}", field=field_name)


def rental_days(start: DateLike, end: DateLike) -> int:
    """
    Billable days between pickup and return.

    Every started 24 hours counts as a full day: a 26-hour rental is 2 days.
    """
    start_dt = parse_datetime(start, "start")
    end_dt = parse_datetime(end, "end")
    if (start_dt.tzinfo is None) != (end_dt.tzinfo is None):
        raise InvalidInputError("Start and end must both carry a timezone or neither", field="end")
    if end_dt <= start_dt:
        raise InvalidInputError("End date must be after start date", field="end")
    return math.ceil((end_dt - start_dt) / ONE_DAY)
