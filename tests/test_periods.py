"""Tests for month / ISO week period keys."""

from datetime import date

from skincare_engine.routines.periods import month_key, week_range


class TestMonthKey:
    def test_first_of_month(self):
        assert month_key(date(2024, 5, 15)) == "2024-05-01"
        assert month_key(date(2024, 12, 31)) == "2024-12-01"


class TestWeekRange:
    def test_midweek(self):
        assert week_range(date(2024, 5, 15)) == ("2024-05-13", "2024-05-19")

    def test_monday_and_sunday_belong_to_same_week(self):
        assert week_range(date(2024, 5, 13)) == week_range(date(2024, 5, 19))

    def test_sunday_is_not_next_week(self):
        assert week_range(date(2024, 5, 19))[0] == "2024-05-13"

    def test_crosses_year_boundary(self):
        assert week_range(date(2025, 1, 1)) == ("2024-12-30", "2025-01-05")
