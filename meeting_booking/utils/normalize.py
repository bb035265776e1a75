"""
Canonical date / time representations used by every booking component.

Dates are calendar dates (``YYYY-MM-DD``) taken from the value's own
year/month/day. They are never passed through a UTC or local-offset
conversion, so a booking made late in the evening cannot roll onto the
next day. Times are minute-of-day integers.
"""

import re
from datetime import date, datetime
from zoneinfo import ZoneInfo

from meeting_booking.config import settings
from meeting_booking.utils.exceptions import InvalidDateException, InvalidTimeException

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

MINUTES_PER_DAY = 24 * 60

# Human formats seen from calendar widgets; all parsed from their components.
_FALLBACK_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%d %B %Y",
    "%a %b %d %Y",
)


def _from_parts(match: re.Match) -> str | None:
    """Rebuild ``YYYY-MM-DD`` from year/month/day groups, padding as needed; None if no such day."""
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(value, field: str | None = None) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of ``value``; raise InvalidDateException otherwise."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateException(value, field)

    raw = value.strip()
    match = DATE_PATTERN.match(raw)
    if match:
        canonical = _from_parts(match)
        if canonical is None:
            raise InvalidDateException(value, field)
        return canonical

    # ISO datetimes: keep the date part as written, ignore any offset
    head = re.split(r"[T ]", raw, maxsplit=1)[0]
    match = DATE_PATTERN.match(head) if head != raw else None
    canonical = _from_parts(match) if match else None
    if canonical:
        return canonical

    for fmt in _FALLBACK_FORMATS:
        # JS Date.toString() trails the date with time and zone name
        for candidate in (raw, raw[:15]):
            try:
                return datetime.strptime(candidate, fmt).date().isoformat()
            except ValueError:
                continue

    raise InvalidDateException(value, field)


def to_calendar_date(value, field: str | None = None) -> date:
    return date.fromisoformat(normalize_date(value, field))


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def time_to_minutes(value, field: str | None = None) -> int:
    """Parse 24-hour ``HH:MM`` into minutes past midnight."""
    if not is_valid_time(value):
        raise InvalidTimeException(value, field)
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int | None) -> str | None:
    if minutes is None:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def current_wall_clock() -> tuple[date, int]:
    """Today's date and the current minute-of-day in the configured APP_TIMEZONE."""
    now = datetime.now(ZoneInfo(settings.APP_TIMEZONE))
    return now.date(), now.hour * 60 + now.minute
