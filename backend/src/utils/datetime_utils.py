"""
Datetime utilities for consistent timezone handling across the application.

All business logic (report windows, "today", month boundaries) runs in the
business timezone configured by BUSINESS_UTC_OFFSET_MINUTES. Timestamps are
stored timezone-aware; values read back naive (SQLite) are treated as
business-local wall time.
"""

import logging
from datetime import datetime, timezone, timedelta, date
from typing import Optional

from core.config import BUSINESS_UTC_OFFSET_MINUTES

logger = logging.getLogger(__name__)

BUSINESS_TZ = timezone(timedelta(minutes=BUSINESS_UTC_OFFSET_MINUTES))


def business_now() -> datetime:
    """
    Get the current datetime in the business timezone.

    Returns:
        Current timezone-aware datetime
    """
    return datetime.now(BUSINESS_TZ)


def business_today() -> date:
    """Current calendar date in the business timezone."""
    return business_now().date()


def ensure_business_tz(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in the business timezone.

    Args:
        dt: Datetime to normalize

    Returns:
        Timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive values are assumed to already be business-local
        return dt.replace(tzinfo=BUSINESS_TZ)
    return dt.astimezone(BUSINESS_TZ)


def start_of_day(day: date) -> datetime:
    """Midnight at the start of ``day`` in the business timezone."""
    return datetime(day.year, day.month, day.day, tzinfo=BUSINESS_TZ)


def day_range(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """
    Convert an inclusive date range to a half-open datetime range.

    The end date is inclusive, so the returned upper bound is midnight of the
    following day. Queries should use ``>= start`` and ``< end``.

    Raises:
        ValueError: If end_date is before start_date
    """
    if end_date < start_date:
        raise ValueError(f"End date {end_date} is before start date {start_date}")
    return start_of_day(start_date), start_of_day(end_date + timedelta(days=1))


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month: {month}")
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)


def shift_months(day: date, months: int) -> date:
    """
    Move a date by a number of months, clamping the day to the target month.

    Example: shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    _, last = month_range(year, month)
    return date(year, month, min(day.day, last.day))

