"""
Recurring booking support.

Skedda returns a single canonical instance per recurring series, with an
arbitrary date but the series' real time of day, and it does not filter those
instances by the requested window. Whether a series occupies a window is
therefore decided locally, by comparing times of day only.

Known limitation: both ranges are compared on one shared day, so a query
window crossing midnight is not handled precisely.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING

from dateutil.rrule import rruleset, rrulestr

from skedda_client.timeutils import time_of_day, time_overlaps

if TYPE_CHECKING:
    from skedda_client.models import Booking, TimeWindow

logger = logging.getLogger(__name__)

_DTEND_PATTERN = re.compile(r"DTEND:([0-9]+T[0-9]+Z)")


def clean_rule_text(text: str) -> str:
    """Strip DTEND lines and carriage returns, which dateutil rejects."""
    text = _DTEND_PATTERN.sub("", text)
    text = text.replace("\r", "")
    text = text.replace("\n\n", "\n")
    return text.strip()


def parse_rule_set(text: str) -> rruleset:
    """
    Parse an iCalendar recurrence block into a rule set.

    Args:
        text: Raw ``recurrenceRule`` value as sent by Skedda

    Returns:
        The parsed rule set

    Raises:
        ValueError: If dateutil cannot parse the cleaned text
    """
    return rrulestr(clean_rule_text(text), forceset=True)


def has_occurrences(rules: rruleset | None) -> bool:
    if rules is None:
        return False
    return next(iter(rules), None) is not None


def occupies_window(window: TimeWindow, booking: Booking) -> bool:
    """
    Decide whether a recurring booking falls inside ``window``.

    Only the time of day of the window and of the booking's canonical
    occurrence are compared; the dates are thrown away.
    """
    included = overlaps_time_of_day(window.start, window.end, booking.start, booking.end)
    logger.debug(
        f"Recurring booking {booking.id} ({booking.start:%H:%M}-{booking.end:%H:%M}) "
        f"{'kept' if included else 'dropped'} for {window.start:%H:%M}-{window.end:%H:%M}"
    )
    return included


def overlaps_time_of_day(
    t1_start: datetime, t1_end: datetime, t2_start: datetime, t2_end: datetime
) -> bool:
    return time_overlaps(
        time_of_day(t1_start),
        time_of_day(t1_end),
        time_of_day(t2_start),
        time_of_day(t2_end),
    )
