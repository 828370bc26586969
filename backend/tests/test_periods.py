# tests for period label -> date range resolution
# unit tests for practice_admin/utils/periods.py

from datetime import date, datetime

import pytest

from practice_admin.utils.periods import (
    DEFAULT_PERIOD,
    end_of_month,
    get_date_range_for_period,
    start_of_month,
)

NOW = date(2024, 6, 15)


class TestMonthHelpers:
    """month boundary helpers"""

    def test_start_of_month(self):
        assert start_of_month(date(2024, 6, 15)) == date(2024, 6, 1)

    def test_end_of_month_leap_february(self):
        assert end_of_month(date(2024, 2, 10)) == date(2024, 2, 29)

    def test_end_of_month_december(self):
        assert end_of_month(date(2023, 12, 31)) == date(2023, 12, 31)


class TestGetDateRangeForPeriod:
    """period policy relative to a fixed now"""

    def test_month(self):
        r = get_date_range_for_period("month", NOW)
        assert (r.start, r.end) == (date(2024, 6, 1), date(2024, 6, 30))

    def test_quarter(self):
        r = get_date_range_for_period("quarter", NOW)
        assert (r.start, r.end) == (date(2024, 4, 1), date(2024, 6, 30))

    def test_three_months_centered_on_now(self):
        r = get_date_range_for_period("3months", NOW)
        assert (r.start, r.end) == (date(2024, 5, 1), date(2024, 7, 31))

    def test_year(self):
        r = get_date_range_for_period("year", NOW)
        assert (r.start, r.end) == (date(2023, 7, 1), date(2024, 6, 30))

    @pytest.mark.parametrize("label", ["", "week", "YEAR", "decade"])
    def test_unknown_label_falls_back(self, label):
        assert get_date_range_for_period(label, NOW) == get_date_range_for_period(DEFAULT_PERIOD, NOW)

    def test_year_boundary_crossing(self):
        r = get_date_range_for_period("3months", date(2024, 1, 20))
        assert (r.start, r.end) == (date(2023, 12, 1), date(2024, 2, 29))

    def test_accepts_datetime(self):
        r = get_date_range_for_period("month", datetime(2024, 6, 15, 23, 30))
        assert r.start == date(2024, 6, 1)

    def test_start_never_after_end(self):
        for label in ("month", "quarter", "3months", "year", "other"):
            r = get_date_range_for_period(label, NOW)
            assert r.start <= r.end
            assert r.start.day == 1

    def test_defaults_to_today(self):
        r = get_date_range_for_period("month")
        assert r.start.day == 1
        assert r.start <= r.end
