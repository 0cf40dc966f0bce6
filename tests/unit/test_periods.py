"""Calendar period helpers."""

from datetime import date, datetime, timezone

import pytest

from cgrow.leaderboard.exceptions import LeaderboardError, UnknownPeriodError
from cgrow.leaderboard.periods import (
    current_period,
    get_monday,
    get_week_iso,
    month_bounds,
    period_field,
    quarter_bounds,
    quarter_of,
    utc_date,
    week_start,
)


class TestQuarters:
    @pytest.mark.parametrize(
        ("month", "quarter"),
        [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
    )
    def test_quarter_of(self, month, quarter):
        assert quarter_of(month) == quarter

    def test_current_period(self):
        stamp = current_period(datetime(2026, 11, 18, tzinfo=timezone.utc))
        assert (stamp.month, stamp.quarter, stamp.year) == (11, 4, 2026)


class TestBounds:
    def test_month_bounds(self):
        start, end = month_bounds(datetime(2026, 11, 18, 12, tzinfo=timezone.utc))
        assert start == datetime(2026, 11, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 12, 1, tzinfo=timezone.utc)

    def test_december_rolls_into_next_year(self):
        start, end = month_bounds(datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc))
        assert start == datetime(2026, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_quarter_bounds(self):
        start, end = quarter_bounds(datetime(2026, 5, 2, tzinfo=timezone.utc))
        assert start == datetime(2026, 4, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 7, 1, tzinfo=timezone.utc)

    def test_last_quarter_rolls_into_next_year(self):
        start, end = quarter_bounds(datetime(2026, 11, 18, tzinfo=timezone.utc))
        assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestWeeks:
    def test_week_iso_year_boundary(self):
        """Dec 29, 2025 is a Monday in ISO week 1 of 2026."""
        assert get_week_iso(datetime(2025, 12, 29, 12, tzinfo=timezone.utc)) == "2026-W01"

    def test_get_monday_from_sunday(self):
        assert get_monday(date(2026, 11, 22)) == date(2026, 11, 16)

    def test_week_start_is_monday_midnight_utc(self):
        assert week_start(datetime(2026, 11, 18, 15, tzinfo=timezone.utc)) == datetime(
            2026, 11, 16, tzinfo=timezone.utc
        )


class TestUtcDate:
    def test_naive_is_taken_as_utc(self):
        assert utc_date(datetime(2026, 11, 18, 23, 30)) == date(2026, 11, 18)

    def test_aware_is_converted(self):
        from datetime import timedelta

        plus_two = timezone(timedelta(hours=2))
        assert utc_date(datetime(2026, 11, 19, 1, 0, tzinfo=plus_two)) == date(2026, 11, 18)


class TestPeriodField:
    @pytest.mark.parametrize(
        ("period", "field"),
        [("all", "total_points"), ("monthly", "monthly_points"), ("quarterly", "quarterly_points")],
    )
    def test_known_periods(self, period, field):
        assert period_field(period) == field

    def test_unknown_period(self):
        with pytest.raises(UnknownPeriodError, match="weekly"):
            period_field("weekly")

    def test_unknown_period_is_a_leaderboard_value_error(self):
        with pytest.raises(LeaderboardError):
            period_field("yearly")
        with pytest.raises(ValueError):
            period_field("yearly")
