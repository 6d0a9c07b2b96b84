"""Unit tests for calendar helpers."""

from datetime import date, datetime

from backend.app.utils.dates import (
    day_bounds,
    iso_week_number,
    short_date,
    short_date_with_year,
    start_of_week,
    week_bounds,
)


class TestWeekMath:
    def test_monday_stays(self):
        assert start_of_week(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_sunday_rolls_back_six_days(self):
        assert start_of_week(date(2024, 1, 7)) == date(2024, 1, 1)

    def test_midweek_rolls_back_to_monday(self):
        assert start_of_week(date(2024, 1, 4)) == date(2024, 1, 1)

    def test_week_bounds_half_open(self):
        start, end = week_bounds(date(2024, 1, 3))
        assert start == datetime(2024, 1, 1)
        assert end == datetime(2024, 1, 8)

    def test_day_bounds(self):
        start, end = day_bounds(date(2024, 2, 29))
        assert start == datetime(2024, 2, 29)
        assert end == datetime(2024, 3, 1)


class TestIsoWeekNumber:
    def test_first_monday_of_2024(self):
        assert iso_week_number(date(2024, 1, 1)) == 1

    def test_last_day_of_2024_belongs_to_week_one_of_2025(self):
        assert iso_week_number(date(2024, 12, 31)) == 1

    def test_year_with_53_weeks(self):
        assert iso_week_number(date(2020, 12, 31)) == 53

    def test_early_january_in_previous_years_last_week(self):
        assert iso_week_number(date(2021, 1, 3)) == 53


class TestLabels:
    def test_short_date(self):
        assert short_date(date(2024, 1, 5)) == "Jan 5"

    def test_short_date_with_year(self):
        assert short_date_with_year(date(2024, 1, 11)) == "Jan 11, 2024"
