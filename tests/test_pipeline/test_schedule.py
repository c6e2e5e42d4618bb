"""Tests for the pure batch scheduling functions."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from brokerage.models.batch_report_setting import AutoCreatePeriod
from brokerage.pipeline.schedule import (
    BatchExecutionTarget,
    cadence_days,
    compute_initial_execution,
    compute_next_execution,
    compute_report_period,
    select_due,
    select_overdue,
)

TOKYO = ZoneInfo("Asia/Tokyo")


def make_target(next_execution_date: datetime, **kwargs) -> BatchExecutionTarget:
    defaults = {
        "id": "setting-1",
        "client_id": "client-1",
        "created_at": datetime(2024, 1, 1, 0, 0),
        "property_id": "prop-1",
        "property_name": "Test Residence",
        "weekday": 1,
        "start_date": date(2024, 1, 1),
        "auto_create_period": AutoCreatePeriod.ONE_WEEK,
        "auto_generate": True,
        "execution_time": "01:00",
        "next_execution_date": next_execution_date,
        "execution_count": 0,
        "employee_id": "employee-1",
    }
    defaults.update(kwargs)
    return BatchExecutionTarget(**defaults)


class TestCadenceDays:
    """Tests for cadence_days."""

    def test_known_cadences(self):
        """Should map each cadence literal to its day count."""
        assert cadence_days(AutoCreatePeriod.ONE_WEEK) == 7
        assert cadence_days("every 2 weeks") == 14

    def test_unknown_cadence_rejected(self):
        """Should raise ValueError for an unrecognized cadence."""
        with pytest.raises(ValueError):
            cadence_days("every 3 weeks")


class TestSelectDue:
    """Tests for select_due."""

    NOW = datetime(2024, 6, 10, 1, 0, tzinfo=UTC)

    def test_inside_window_selected(self):
        """Should select a setting due half an hour ago."""
        target = make_target(datetime(2024, 6, 10, 0, 30, tzinfo=UTC))
        assert select_due([target], self.NOW) == [target]

    def test_before_window_excluded(self):
        """Should exclude a setting due just over an hour ago."""
        target = make_target(datetime(2024, 6, 9, 23, 59, tzinfo=UTC))
        assert select_due([target], self.NOW) == []

    def test_upper_bound_inclusive(self):
        """Should select a setting due exactly now."""
        target = make_target(datetime(2024, 6, 10, 1, 0, tzinfo=UTC))
        assert select_due([target], self.NOW) == [target]

    def test_lower_bound_exclusive(self):
        """Should exclude a setting due exactly one window ago."""
        target = make_target(datetime(2024, 6, 10, 0, 0, tzinfo=UTC))
        assert select_due([target], self.NOW) == []

    def test_future_excluded(self):
        """Should exclude a setting due after now."""
        target = make_target(datetime(2024, 6, 10, 1, 1, tzinfo=UTC))
        assert select_due([target], self.NOW) == []

    def test_mixed_timezones_compare_by_instant(self):
        """Should compare instants, not wall-clock values."""
        # 09:30 JST is 00:30 UTC
        target = make_target(datetime(2024, 6, 10, 9, 30, tzinfo=TOKYO))
        assert select_due([target], self.NOW) == [target]

    def test_custom_window(self):
        """Should widen selection with a larger window."""
        target = make_target(datetime(2024, 6, 9, 23, 0, tzinfo=UTC))
        assert select_due([target], self.NOW) == []
        assert select_due([target], self.NOW, window=timedelta(hours=3)) == [target]


class TestSelectOverdue:
    """Tests for select_overdue."""

    NOW = datetime(2024, 6, 10, 1, 0, tzinfo=UTC)

    def test_lower_bound_included(self):
        """Should treat a firing exactly one window ago as overdue."""
        target = make_target(datetime(2024, 6, 10, 0, 0, tzinfo=UTC))
        assert select_overdue([target], self.NOW) == [target]

    def test_days_old_included(self):
        """Should keep a firing missed days ago."""
        target = make_target(datetime(2024, 6, 3, 1, 0, tzinfo=UTC))
        assert select_overdue([target], self.NOW) == [target]

    def test_inside_window_excluded(self):
        """Should leave firings inside the window to select_due."""
        target = make_target(datetime(2024, 6, 10, 0, 1, tzinfo=UTC))
        assert select_overdue([target], self.NOW) == []
        assert select_due([target], self.NOW) == [target]


class TestComputeReportPeriod:
    """Tests for compute_report_period."""

    def test_one_week(self):
        """Should span the previous seven days up to the execution date."""
        period = compute_report_period(
            AutoCreatePeriod.ONE_WEEK, datetime(2024, 6, 10, 1, 0, tzinfo=UTC)
        )
        assert period.start_date == date(2024, 6, 3)
        assert period.end_date == date(2024, 6, 10)

    def test_two_weeks(self):
        """Should span the previous fourteen days up to the execution date."""
        period = compute_report_period(
            AutoCreatePeriod.TWO_WEEKS, datetime(2024, 6, 10, 1, 0, tzinfo=UTC)
        )
        assert period.start_date == date(2024, 5, 27)
        assert period.end_date == date(2024, 6, 10)

    def test_uses_operational_date(self):
        """Should take the calendar date in Tokyo, not UTC."""
        # 2024-06-09 16:00 UTC is already 2024-06-10 in Tokyo
        period = compute_report_period(
            AutoCreatePeriod.ONE_WEEK, datetime(2024, 6, 9, 16, 0, tzinfo=UTC)
        )
        assert period.end_date == date(2024, 6, 10)

    def test_str(self):
        """Should render as start..end."""
        period = compute_report_period(
            AutoCreatePeriod.ONE_WEEK, datetime(2024, 6, 10, 10, 0, tzinfo=TOKYO)
        )
        assert str(period) == "2024-06-03..2024-06-10"


class TestComputeNextExecution:
    """Tests for compute_next_execution."""

    EXECUTED = datetime(2024, 6, 5, 1, 0, tzinfo=UTC)  # Wednesday

    def test_same_weekday_no_adjustment(self):
        """Should add exactly seven days when the weekday already matches."""
        result = compute_next_execution(3, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result == datetime(2024, 6, 12, 1, 0, tzinfo=UTC)

    def test_shift_forward_to_configured_weekday(self):
        """Should shift forward two days from Wednesday to Friday."""
        result = compute_next_execution(5, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result == datetime(2024, 6, 14, 1, 0, tzinfo=UTC)

    def test_shift_backward_when_shorter(self):
        """Should shift back one day from Wednesday to Tuesday."""
        result = compute_next_execution(2, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result == datetime(2024, 6, 11, 1, 0, tzinfo=UTC)

    def test_shift_backward_three_days(self):
        """Should prefer -3 over +4 days (Wednesday to Sunday)."""
        result = compute_next_execution(0, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result == datetime(2024, 6, 9, 1, 0, tzinfo=UTC)

    def test_shift_forward_three_days(self):
        """Should shift +3 days from Wednesday to Saturday."""
        result = compute_next_execution(6, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result == datetime(2024, 6, 15, 1, 0, tzinfo=UTC)

    def test_two_weeks(self):
        """Should add fourteen days for a two-week cadence."""
        result = compute_next_execution(3, AutoCreatePeriod.TWO_WEEKS, self.EXECUTED)
        assert result == datetime(2024, 6, 19, 1, 0, tzinfo=UTC)

    def test_result_is_operational_time(self):
        """Should return an aware datetime in Asia/Tokyo."""
        result = compute_next_execution(3, AutoCreatePeriod.ONE_WEEK, self.EXECUTED)
        assert result.utcoffset() == timedelta(hours=9)

    def test_weekday_taken_in_tokyo(self):
        """Should align weekdays on the Tokyo calendar."""
        # Tuesday 2024-06-04 20:00 UTC is Wednesday 05:00 in Tokyo
        executed = datetime(2024, 6, 4, 20, 0, tzinfo=UTC)
        result = compute_next_execution(3, AutoCreatePeriod.ONE_WEEK, executed)
        assert result == datetime(2024, 6, 12, 5, 0, tzinfo=TOKYO)


class TestComputeInitialExecution:
    """Tests for compute_initial_execution."""

    def test_first_matching_weekday_on_or_after_start(self):
        """Should pick the first Monday on or after the start date."""
        # 2030-01-01 is a Tuesday
        result = compute_initial_execution(
            date(2030, 1, 1), "01:00", 1, AutoCreatePeriod.ONE_WEEK
        )
        assert result == datetime(2030, 1, 7, 1, 0, tzinfo=TOKYO)

    def test_start_date_on_weekday(self):
        """Should use the start date itself when it falls on the weekday."""
        result = compute_initial_execution(
            date(2030, 1, 1), "09:30", 2, AutoCreatePeriod.ONE_WEEK
        )
        assert result == datetime(2030, 1, 1, 9, 30, tzinfo=TOKYO)

    def test_past_start_rolled_forward_by_cadence(self):
        """Should roll a past first firing forward by whole cadence steps."""
        now = datetime(2024, 6, 12, 12, 0, tzinfo=TOKYO)
        result = compute_initial_execution(
            date(2024, 6, 3), "01:00", 1, AutoCreatePeriod.TWO_WEEKS, now=now
        )
        # 06-03 and 06-17 are Mondays two weeks apart; 06-03 is past
        assert result == datetime(2024, 6, 17, 1, 0, tzinfo=TOKYO)
        assert result > now

    def test_now_exactly_on_candidate_rolls_forward(self):
        """Should not place the first firing exactly at now."""
        now = datetime(2024, 6, 3, 1, 0, tzinfo=TOKYO)
        result = compute_initial_execution(
            date(2024, 6, 3), "01:00", 1, AutoCreatePeriod.ONE_WEEK, now=now
        )
        assert result == datetime(2024, 6, 10, 1, 0, tzinfo=TOKYO)

    def test_invalid_execution_time(self):
        """Should raise ValueError for a malformed execution time."""
        with pytest.raises(ValueError):
            compute_initial_execution(date(2030, 1, 1), "0100", 1, AutoCreatePeriod.ONE_WEEK)
