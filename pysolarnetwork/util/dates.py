from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Optional, Union

from dateutil import parser as dateparser

DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(date: datetime) -> datetime:
    """Return date in UTC, treating naive values as already being UTC."""
    if date.tzinfo is None:
        return date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc)


def iso8601_date(date: datetime, include_time: bool = False) -> str:
    """
    Format a date as a compact ISO 8601 UTC string.

        iso8601_date(d)       -> 20170425
        iso8601_date(d, True) -> 20170425T143000Z
    """
    date = as_utc(date)
    if include_time:
        return date.strftime('%Y%m%dT%H%M%SZ')
    return date.strftime('%Y%m%d')


def http_date(date: datetime) -> str:
    # e.g. Tue, 25 Apr 2017 14:30:00 GMT
    return format_datetime(as_utc(date).replace(microsecond=0), usegmt=True)


def floor_utc_day(date: datetime) -> datetime:
    return as_utc(date).replace(hour=0, minute=0, second=0, microsecond=0)


def parse_date(value: Union[str, int, float, datetime, None]) -> Optional[datetime]:
    """
    Parse a SolarNetwork date value into a UTC datetime.

    Accepts datetime objects, epoch milliseconds, ISO 8601 strings and the
    SolarNetwork "yyyy-MM-dd HH:mm:ss.SSSZ" timestamp style. Returns None
    for empty or unparsable values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        return as_utc(dateparser.isoparse(value.replace(' ', 'T', 1)))
    except ValueError:
        pass
    try:
        return as_utc(dateparser.parse(value))
    except (ValueError, OverflowError):
        return None
