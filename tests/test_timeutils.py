"""Tests for window arithmetic and the time overlap decision table."""

from datetime import date, datetime, time

import pytest

from skedda_client.timeutils import (
    format_timestamp,
    is_aligned,
    parse_clock,
    resolve_day,
    time_of_day,
    time_overlaps,
    truncate_to_minute,
)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(1991, 3, 7, hour, minute)


BASE_START, BASE_END = at(8), at(12)


class TestTimeOverlaps:
    """The reference range is always 08:00-12:00."""

    @pytest.mark.parametrize(
        "start, end, expected",
        [
            (at(5), at(7), False),
            (at(6), at(8), False),
            (at(7), at(9), True),
            (at(8), at(10), True),
            (at(9), at(11), True),
            (at(10), at(12), True),
            (at(11), at(13), True),
            (at(12), at(14), False),
            (at(13), at(15), False),
            (at(8), at(12), True),
            (at(7), at(13), True),
            (at(8), at(13), True),
            (at(7), at(12), True),
        ],
    )
    def test_decision_table(self, start, end, expected):
        assert time_overlaps(BASE_START, BASE_END, start, end) is expected

    @pytest.mark.parametrize(
        "t1, t2",
        [
            ((at(12), at(8)), (at(9), at(10))),
            ((at(8), at(12)), (at(10), at(9))),
            ((at(12), at(8)), (at(12), at(8))),
            ((at(11), at(9)), (at(7), at(13))),
        ],
    )
    def test_inverted_ranges_never_overlap(self, t1, t2):
        assert time_overlaps(*t1, *t2) is False

    def test_touching_endpoints_are_disjoint_both_ways(self):
        assert time_overlaps(at(5), at(7), at(7), at(9)) is False
        assert time_overlaps(at(6), at(8), at(8), at(10)) is False

    def test_accepts_plain_times(self):
        assert time_overlaps(time(8), time(12), time(9), time(10)) is True
        assert time_overlaps(time(8), time(12), time(13), time(14)) is False


class TestHelpers:
    def test_time_of_day_drops_date_and_microseconds(self):
        assert time_of_day(datetime(2024, 5, 1, 9, 30, 15, 999)) == time(9, 30, 15)

    def test_format_timestamp_is_naive_iso(self):
        assert format_timestamp(datetime(2024, 1, 15, 18, 5, 9)) == "2024-01-15T18:05:09"

    def test_truncate_to_minute(self):
        assert truncate_to_minute(datetime(2024, 1, 15, 18, 5, 59, 12)) == datetime(
            2024, 1, 15, 18, 5
        )

    def test_is_aligned(self):
        assert is_aligned(datetime(2024, 1, 15, 9, 45), 15)
        assert not is_aligned(datetime(2024, 1, 15, 9, 50), 15)
        assert not is_aligned(datetime(2024, 1, 15, 9, 45, 30), 15)


class TestResolveDay:
    today = date(2024, 2, 28)

    @pytest.mark.parametrize("value", [None, "", "today", " Today "])
    def test_today(self, value):
        assert resolve_day(value, self.today) == self.today

    def test_tomorrow_crosses_month(self):
        assert resolve_day("tomorrow", date(2024, 2, 29)) == date(2024, 3, 1)

    def test_iso_date(self):
        assert resolve_day("2024-12-24", self.today) == date(2024, 12, 24)

    def test_garbage(self):
        with pytest.raises(ValueError):
            resolve_day("next week", self.today)


class TestParseClock:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("3:04pm", time(15, 4)),
            ("3pm", time(15)),
            ("12am", time(0)),
            ("11:45AM", time(11, 45)),
        ],
    )
    def test_layouts(self, value, expected):
        assert parse_clock(value) == expected

    def test_no_layout_matches(self):
        with pytest.raises(ValueError, match="no time format matched 15:00"):
            parse_clock("15:00")
