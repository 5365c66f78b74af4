"""
Window arithmetic shared by the gateway, the reconciler and the CLI.

Ranges that only touch at an endpoint do not overlap.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime, time, timedelta
from typing import TypeVar

from skedda_client.config import SkeddaConstants

T = TypeVar("T", datetime, time)


def time_overlaps(t1_start: T, t1_end: T, t2_start: T, t2_end: T) -> bool:
    """
    Return True if the t1 range overlaps, or is overlapped by, the t2 range.

    Args:
        t1_start: Start of the reference range
        t1_end: End of the reference range
        t2_start: Start of the compared range
        t2_end: End of the compared range

    Returns:
        False for any inverted range, otherwise whether t2 is a subset,
        superset or exact copy of t1
    """
    # wrong inputs
    if t1_start > t1_end or t2_start > t2_end:
        return False

    # subset
    if (t1_start < t2_start < t1_end) or (t1_start < t2_end < t1_end):
        return True

    # superset
    if (t2_start < t1_start < t2_end) or (t2_start < t1_end < t2_end):
        return True

    # equal
    if t2_start == t1_start and t2_end == t1_end:
        return True

    return False


def time_of_day(value: datetime) -> time:
    """Drop the date, timezone and sub-second part of ``value``."""
    return value.time().replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.strftime(SkeddaConstants.DATETIME_FORMAT)


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def is_aligned(value: datetime, minutes: int) -> bool:
    """Whether ``value`` sits exactly on a ``minutes`` boundary of its day."""
    midnight = datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)
    return (value - midnight) % timedelta(minutes=minutes) == timedelta(0)


def resolve_day(on: str | None, today: dt.date | None = None) -> dt.date:
    """
    Turn ``today``, ``tomorrow`` or an ISO date into a date.

    Raises:
        ValueError: If ``on`` is none of those
    """
    today = today or dt.date.today()
    on = (on or "").strip().lower()

    if on in ("", "today"):
        return today
    if on == "tomorrow":
        return today + timedelta(days=1)

    return datetime.strptime(on, "%Y-%m-%d").date()


def parse_clock(value: str) -> time:
    """
    Parse a wall-clock time written as ``3:04pm`` or ``3pm``.

    Raises:
        ValueError: If no layout matches
    """
    text = value.strip().lower()
    for layout in ("%I:%M%p", "%I%p"):
        try:
            return datetime.strptime(text, layout).time()
        except ValueError:
            continue

    raise ValueError(f"no time format matched {value}")
