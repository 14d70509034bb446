"""Date utility functions for tagClock."""
from datetime import datetime, date, time, timezone, timedelta, tzinfo
from typing import List, Optional, Tuple

from ..errors import InvalidInputError

def to_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to UTC."""
    return dt.astimezone(timezone.utc)

def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp as stored in patch files.

    Args:
        value: Timestamp string (e.g. "2019-07-24T14:00:00+00:00" or "...Z")

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the string is not a timestamp with an offset
    """
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        raise ValueError(f"timestamp without UTC offset: {value}")
    return to_utc(dt)

def format_timestamp(dt: datetime) -> str:
    """Format an aware datetime for a patch file (UTC, seconds precision)."""
    return to_utc(dt).replace(microsecond=0).isoformat()

def localize(naive: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach a timezone to a naive local datetime.

    Args:
        naive: Wall clock time
        tz: Zone to interpret it in; the system zone when None

    Returns:
        Aware datetime
    """
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)

def as_local(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Convert an aware datetime to local wall clock time."""
    return dt.astimezone(tz) if tz is not None else dt.astimezone()

def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD command line date.

    Raises:
        InvalidInputError: If the value is not a valid date
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD")

def parse_datetime(value: str, tz: Optional[tzinfo] = None, today: Optional[date] = None) -> datetime:
    """Parse a user supplied point in time.

    Accepts "HH:MM" (today), "YYYY-MM-DD HH:MM" and full ISO 8601. Values
    without an offset are local time.

    Args:
        value: User input
        tz: Local zone (system zone when None)
        today: Date used for "HH:MM" input

    Returns:
        Aware datetime in UTC

    Raises:
        InvalidInputError: If the value cannot be parsed
    """
    value = value.strip()
    try:
        clock = datetime.strptime(value, "%H:%M").time()
    except ValueError:
        clock = None
    if clock is not None:
        day = today or as_local(datetime.now(timezone.utc), tz).date()
        return to_utc(localize(datetime.combine(day, clock), tz))

    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM, 'YYYY-MM-DD HH:MM' or ISO 8601")
    if dt.tzinfo is None:
        dt = localize(dt, tz)
    return to_utc(dt)

def day_bounds(day: date, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """Get the UTC instants at which a local day starts and ends.

    Args:
        day: Local calendar day

    Returns:
        Tuple of (start, end), end being the start of the next day
    """
    start = localize(datetime.combine(day, time.min), tz)
    end = localize(datetime.combine(day + timedelta(days=1), time.min), tz)
    return to_utc(start), to_utc(end)

def resolve_range(start_str: Optional[str], end_str: Optional[str], today: date, default_days: int = 1) -> Tuple[date, date]:
    """Resolve --start/--end arguments to an inclusive date range.

    Args:
        start_str: Start date string (YYYY-MM-DD) or None
        end_str: End date string (YYYY-MM-DD) or None
        today: Fallback for a missing end date
        default_days: Number of days covered when no start is given

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        InvalidInputError: If start is after end
    """
    end_date = parse_date(end_str) if end_str else today
    start_date = parse_date(start_str) if start_str else end_date - timedelta(days=default_days - 1)
    if start_date > end_date:
        raise InvalidInputError(f"Start date {start_date} is after end date {end_date}")
    return start_date, end_date

def iter_days(start_date: date, end_date: date) -> List[date]:
    """List all days of an inclusive range."""
    days = []
    d = start_date
    while d <= end_date:
        days.append(d)
        d += timedelta(days=1)
    return days

def day_str(dt: date) -> str:
    """Format a date as a string with day of week.

    Args:
        dt: Date to format

    Returns:
        Formatted date string
    """
    return f"({['Mo','Tue','Wed','Thu','Fri','Sat','Sun'][dt.weekday()]}){dt}"
