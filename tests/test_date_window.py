from datetime import datetime

import pytest

from app.core.exceptions import InvalidDateRangeError
from app.services.date_window import (
    DateWindow,
    resolve_date_window,
    parse_date_bounds,
    to_iso,
)


class TestResolveDateWindow:
    """Tests for turning fromDate/toDate into an analytics window."""

    def test_defaults_to_current_month(self):
        window = resolve_date_window(None, None, now=datetime(2024, 3, 20, 15, 30))

        assert window.start == datetime(2024, 3, 1, 0, 0, 0, 0)
        assert window.end == datetime(2024, 3, 31, 23, 59, 59, 999000)

    def test_empty_strings_count_as_absent(self):
        window = resolve_date_window("", "", now=datetime(2024, 2, 10))

        # 2024 is a leap year
        assert window.start == datetime(2024, 2, 1)
        assert window.end == datetime(2024, 2, 29, 23, 59, 59, 999000)

    def test_december_rolls_to_year_end(self):
        window = resolve_date_window(None, None, now=datetime(2023, 12, 31, 23, 0))

        assert window.start == datetime(2023, 12, 1)
        assert window.end == datetime(2023, 12, 31, 23, 59, 59, 999000)

    def test_explicit_range_covers_whole_days(self):
        window = resolve_date_window("2024-03-01", "2024-03-31")

        assert window.start == datetime(2024, 3, 1, 0, 0, 0, 0)
        assert window.end == datetime(2024, 3, 31, 23, 59, 59, 999000)

    def test_only_from_date_leaves_end_open(self):
        window = resolve_date_window("2024-03-05", None)

        assert window.start == datetime(2024, 3, 5)
        assert window.end is None

    def test_only_to_date_leaves_start_open(self):
        window = resolve_date_window(None, "2024-03-05")

        assert window.start is None
        assert window.end == datetime(2024, 3, 5, 23, 59, 59, 999000)

    def test_timestamp_input_uses_its_calendar_date(self):
        window = resolve_date_window("2024-03-05T17:45:00", "2024-03-06T08:00:00")

        assert window.start == datetime(2024, 3, 5)
        assert window.end == datetime(2024, 3, 6, 23, 59, 59, 999000)

    def test_offset_timestamp_keeps_its_own_calendar_date(self):
        # 23:30 at -05:00 is already April 1st in UTC
        window = resolve_date_window("2024-03-31T23:30:00-05:00", "2024-04-01T00:30:00+14:00")

        assert window.start == datetime(2024, 3, 31)
        assert window.end == datetime(2024, 4, 1, 23, 59, 59, 999000)

    def test_start_after_end_is_not_rejected(self):
        window = resolve_date_window("2024-03-31", "2024-03-01")

        assert window.start > window.end

    @pytest.mark.parametrize("bad", ["not-a-date", "2024-13-01", "2024-02-30"])
    def test_unparseable_date_raises(self, bad):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            resolve_date_window(bad, None)

        assert exc_info.value.details["param"] == "fromDate"

    def test_unparseable_to_date_names_the_param(self):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            resolve_date_window("2024-03-01", "yesterday")

        assert exc_info.value.details["param"] == "toDate"


class TestParseDateBounds:
    def test_no_bounds_means_unbounded(self):
        window = parse_date_bounds(None, None)

        assert window == DateWindow(start=None, end=None)


class TestSerialization:
    def test_iso_has_millisecond_precision(self):
        assert to_iso(datetime(2024, 3, 31, 23, 59, 59, 999000)) == "2024-03-31T23:59:59.999"
        assert to_iso(datetime(2024, 3, 1)) == "2024-03-01T00:00:00.000"

    def test_unbounded_side_serializes_to_none(self):
        window = resolve_date_window("2024-03-01", None)

        assert window.as_dict() == {"from": "2024-03-01T00:00:00.000", "to": None}
