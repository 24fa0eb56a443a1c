# soapnotes/utils/dates.py
"""Date helpers for session notes. All output uses the configured script time zone."""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil import tz

DEFAULT_TIMEZONE = "America/Los_Angeles"

_US_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")

# Two defaults that differ in year, month and day. A string parses to the same
# date under both only when it spells out all three itself.
_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _zone(tz_name: Optional[str]):
    return tz.gettz(tz_name or DEFAULT_TIMEZONE) or tz.UTC


def _localize(value: datetime, tz_name: Optional[str]) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(_zone(tz_name))


def _short(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(_zone(tz_name))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a cell value into a datetime, or None when it is not a full date.

    Strings missing a year, month or day ("Tuesday", "June") are rejected
    rather than completed from the current date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        first, second = (date_parser.parse(value, default=d) for d in _DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def format_session_date(val: Any, tz_name: Optional[str] = None) -> Any:
    """
    Render a Session Date answer as M/D/YYYY.

    Strings already written as M/D/YYYY or MM/DD/YYYY come back untouched,
    and free text that does not parse as a date is returned as-is.
    """
    if isinstance(val, datetime):
        return _short(_localize(val, tz_name))
    if isinstance(val, date):
        return _short(val)

    parsed = parse_date(val)
    if parsed is None:
        return val
    if _US_DATE_RE.match(val):
        return val
    return _short(_localize(parsed, tz_name))


def timestamp_key(value: Any, tz_name: Optional[str] = None) -> Optional[datetime]:
    """Naive local datetime used to order sheet rows by Timestamp."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return _localize(parsed, tz_name).replace(tzinfo=None)


def format_entry_timestamp(value: datetime) -> str:
    # e.g. 3/15/2024, 2:05:07 PM
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{_short(value)}, {hour}:{value.minute:02d}:{value.second:02d} {suffix}"
