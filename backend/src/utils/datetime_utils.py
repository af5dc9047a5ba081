"""
Datetime utilities for consistent timezone handling across the application.

All business logic runs in the practice's single configured timezone
(a fixed UTC offset, see PRACTICE_UTC_OFFSET_HOURS). Wall-clock times inside
the scheduling engine are represented as minutes since midnight.
"""

import logging
import re
from datetime import datetime, timezone, timedelta, date, time
from typing import Iterator, Optional

from core.config import PRACTICE_UTC_OFFSET_HOURS

logger = logging.getLogger(__name__)

# Practice timezone constant
PRACTICE_TZ = timezone(timedelta(hours=PRACTICE_UTC_OFFSET_HOURS))

MINUTES_PER_DAY = 24 * 60

# One or two hour digits, exactly two minute digits
_TIME_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def practice_now() -> datetime:
    """
    Get current practice-local datetime.

    Returns:
        Current datetime with the practice timezone attached
    """
    return datetime.now(PRACTICE_TZ)


def practice_today() -> date:
    """Get today's date in the practice timezone."""
    return practice_now().date()


def ensure_practice_tz(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in the practice timezone.

    Args:
        dt: Datetime to normalize

    Returns:
        Timezone-aware datetime in the practice timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # If naive, assume it's already practice-local time
        return dt.replace(tzinfo=PRACTICE_TZ)
    else:
        return dt.astimezone(PRACTICE_TZ)


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD or YYYY/MM/DD format.

    Automatically normalizes single-digit months/days.

    Args:
        date_str: Date string in YYYY-MM-DD or YYYY/MM/DD format

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()

    if '/' in date_str:
        parts = date_str.split('/')
    elif '-' in date_str:
        parts = date_str.split('-')
    else:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    if len(parts) != 3:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    normalized = f"{parts[0].zfill(4)}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"

    try:
        return datetime.strptime(normalized, '%Y-%m-%d').date()
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}") from e


def parse_time_string(time_str: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    Raises:
        ValueError: If the string is not a valid 24-hour wall-clock time
    """
    match = _TIME_PATTERN.fullmatch(time_str.strip()) if time_str else None
    if match is None:
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str!r}")

    hour, minute = int(match.group(1)), int(match.group(2))

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid 24-hour time: {time_str!r}")
    return hour * 60 + minute


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_minutes(time_obj: time) -> int:
    """Convert a ``datetime.time`` to minutes since midnight (seconds are dropped)."""
    return time_obj.hour * 60 + time_obj.minute


def minutes_to_time(minutes: int) -> time:
    """Convert minutes since midnight to a ``datetime.time``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a single day: {minutes}")
    return time(minutes // 60, minutes % 60)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
