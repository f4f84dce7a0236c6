"""Tests for next-run calculation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from litestar_automation.core.types import ScheduleType
from litestar_automation.exceptions import ScheduleValidationError
from litestar_automation.scheduling.calculator import next_run, validate_schedule

UTC = timezone.utc
# Wednesday
NOW = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)


def at(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


@pytest.mark.unit
class TestOnce:
    """Tests for one-off schedules."""

    def test_aware_string(self) -> None:
        """A trailing Z is read as UTC."""
        assert next_run("once", {"datetime": "2024-06-01T10:00:00Z"}, now=NOW) == at(2024, 6, 1, 10, 0)

    def test_naive_uses_config_timezone(self) -> None:
        """Naive datetimes are local to the configured timezone."""
        result = next_run("once", {"datetime": "2024-06-01T10:00:00", "timezone": "Asia/Seoul"}, now=NOW)

        assert result == at(2024, 6, 1, 1, 0)

    def test_past_moment_returned_verbatim(self) -> None:
        """A moment in the past is still the next run, so it is immediately due."""
        assert next_run("once", {"datetime": "2024-04-01T00:00:00+00:00"}, now=NOW) == at(2024, 4, 1, 0, 0)

    def test_datetime_object(self) -> None:
        """Datetime objects are accepted as-is."""
        moment = at(2024, 5, 2, 12, 30)

        assert next_run(ScheduleType.ONCE, {"datetime": moment}, now=NOW) == moment

    @pytest.mark.parametrize("config", [{}, {"datetime": "tomorrow"}, {"datetime": 5}])
    def test_invalid(self, config: dict) -> None:
        """Missing or unparseable datetimes are rejected."""
        with pytest.raises(ScheduleValidationError):
            next_run("once", config, now=NOW)


@pytest.mark.unit
class TestInterval:
    """Tests for fixed-interval schedules."""

    def test_first_run_from_now(self) -> None:
        """Without a previous run the interval counts from now."""
        assert next_run("interval", {"intervalMinutes": 30}, now=NOW) == NOW + timedelta(minutes=30)

    def test_from_last_run(self) -> None:
        """The interval counts from the previous run."""
        last = at(2024, 5, 1, 7, 45)

        assert next_run("interval", {"intervalMinutes": 30}, last, now=NOW) == at(2024, 5, 1, 8, 15)

    def test_skips_missed_slots(self) -> None:
        """Missed slots are skipped rather than replayed."""
        last = at(2024, 5, 1, 8, 0)
        now = at(2024, 5, 1, 10, 30)

        assert next_run("interval", {"intervalMinutes": 60}, last, now=now) == at(2024, 5, 1, 11, 0)

    @pytest.mark.parametrize("minutes", [0, -5, "10", True, None])
    def test_invalid(self, minutes: object) -> None:
        """Only positive numbers are accepted."""
        with pytest.raises(ScheduleValidationError, match="intervalMinutes must be a positive number"):
            next_run("interval", {"intervalMinutes": minutes}, now=NOW)


@pytest.mark.unit
class TestDaily:
    """Tests for daily schedules."""

    def test_later_today(self) -> None:
        assert next_run("daily", {"time": "09:00"}, now=NOW) == at(2024, 5, 1, 9, 0)

    def test_already_passed(self) -> None:
        assert next_run("daily", {"time": "07:30"}, now=NOW) == at(2024, 5, 2, 7, 30)

    def test_exactly_now_moves_to_tomorrow(self) -> None:
        """The result is strictly after now."""
        assert next_run("daily", {"time": "08:00"}, now=NOW) == at(2024, 5, 2, 8, 0)

    def test_timezone(self) -> None:
        """Wall-clock times are evaluated in the configured timezone."""
        # 17:00 in Seoul, so 09:00 KST tomorrow
        result = next_run("daily", {"time": "09:00", "timezone": "Asia/Seoul"}, now=NOW)

        assert result == at(2024, 5, 2, 0, 0)
        assert result.tzinfo == UTC

    @pytest.mark.parametrize("value", [None, "9am", "24:00", "12:60", 900])
    def test_invalid_time(self, value: object) -> None:
        with pytest.raises(ScheduleValidationError):
            next_run("daily", {"time": value}, now=NOW)

    def test_unknown_timezone(self) -> None:
        with pytest.raises(ScheduleValidationError, match="Unknown timezone: Mars/Olympus"):
            next_run("daily", {"time": "09:00", "timezone": "Mars/Olympus"}, now=NOW)


@pytest.mark.unit
class TestWeekly:
    """Tests for weekly schedules (0 = Sunday)."""

    def test_next_monday(self) -> None:
        assert next_run("weekly", {"time": "09:00", "dayOfWeek": 1}, now=NOW) == at(2024, 5, 6, 9, 0)

    def test_same_day_later(self) -> None:
        assert next_run("weekly", {"time": "09:00", "dayOfWeek": 3}, now=NOW) == at(2024, 5, 1, 9, 0)

    def test_same_day_passed(self) -> None:
        assert next_run("weekly", {"time": "07:00", "dayOfWeek": 3}, now=NOW) == at(2024, 5, 8, 7, 0)

    def test_sunday(self) -> None:
        assert next_run("weekly", {"time": "10:00", "dayOfWeek": 0}, now=NOW) == at(2024, 5, 5, 10, 0)

    @pytest.mark.parametrize("day", [7, -1, None, "mon"])
    def test_invalid_day(self, day: object) -> None:
        with pytest.raises(ScheduleValidationError, match="dayOfWeek must be an integer between 0 and 6"):
            next_run("weekly", {"time": "09:00", "dayOfWeek": day}, now=NOW)


@pytest.mark.unit
class TestMonthly:
    """Tests for monthly schedules."""

    def test_later_this_month(self) -> None:
        assert next_run("monthly", {"time": "09:00", "dayOfMonth": 15}, now=NOW) == at(2024, 5, 15, 9, 0)

    def test_clamps_to_short_month(self) -> None:
        """Days past the end of the month fall on its last day."""
        now = at(2024, 2, 10, 8, 0)

        assert next_run("monthly", {"time": "09:00", "dayOfMonth": 31}, now=now) == at(2024, 2, 29, 9, 0)

    def test_clamped_day_passed_rolls_to_next_month(self) -> None:
        now = at(2024, 4, 30, 10, 0)

        assert next_run("monthly", {"time": "09:00", "dayOfMonth": 31}, now=now) == at(2024, 5, 31, 9, 0)

    def test_december_rolls_over_year(self) -> None:
        now = at(2024, 12, 20, 8, 0)

        assert next_run("monthly", {"time": "09:00", "dayOfMonth": 15}, now=now) == at(2025, 1, 15, 9, 0)

    @pytest.mark.parametrize("day", [0, 32])
    def test_invalid_day(self, day: int) -> None:
        with pytest.raises(ScheduleValidationError, match="dayOfMonth"):
            next_run("monthly", {"time": "09:00", "dayOfMonth": day}, now=NOW)


@pytest.mark.unit
class TestCron:
    """Tests for cron schedules."""

    def test_every_quarter_hour(self) -> None:
        now = at(2024, 5, 1, 8, 7)

        assert next_run("cron", {"expression": "*/15 * * * *"}, now=now) == at(2024, 5, 1, 8, 15)

    def test_weekdays_skip_weekend(self) -> None:
        # Friday after 09:00
        now = at(2024, 5, 3, 10, 0)

        assert next_run("cron", {"expression": "0 9 * * 1-5"}, now=now) == at(2024, 5, 6, 9, 0)

    def test_exact_match_moves_forward(self) -> None:
        now = at(2024, 5, 1, 9, 0)

        assert next_run("cron", {"expression": "0 9 * * *"}, now=now) == at(2024, 5, 2, 9, 0)

    def test_timezone(self) -> None:
        result = next_run("cron", {"expression": "0 9 * * *", "timezone": "Asia/Seoul"}, now=NOW)

        assert result == at(2024, 5, 2, 0, 0)

    @pytest.mark.parametrize("expression", ["* * *", "61 * * * *", "* * * * * *", None])
    def test_invalid(self, expression: object) -> None:
        with pytest.raises(ScheduleValidationError):
            next_run("cron", {"expression": expression}, now=NOW)


@pytest.mark.unit
class TestScheduleValidation:
    """Tests for type-level validation."""

    @pytest.mark.parametrize(
        ("schedule_type", "config"),
        [
            ("interval", {"intervalMinutes": 5}),
            ("daily", {"time": "06:15"}),
            ("weekly", {"time": "06:15", "dayOfWeek": 6}),
            ("monthly", {"time": "06:15", "dayOfMonth": 1}),
            ("cron", {"expression": "30 2 * * 0"}),
        ],
    )
    def test_recurring_results_are_after_now(self, schedule_type: str, config: dict) -> None:
        assert next_run(schedule_type, config, now=NOW) > NOW

    def test_type_is_case_insensitive(self) -> None:
        assert next_run("DAILY", {"time": "09:00"}, now=NOW) == at(2024, 5, 1, 9, 0)

    def test_unknown_type(self) -> None:
        with pytest.raises(ScheduleValidationError, match="Unknown schedule type: yearly"):
            next_run("yearly", {}, now=NOW)

    def test_config_must_be_mapping(self) -> None:
        with pytest.raises(ScheduleValidationError, match="scheduleConfig must be an object"):
            next_run("daily", None, now=NOW)

    def test_validate_schedule(self) -> None:
        assert validate_schedule("daily", {"time": "09:00"}) == []
        assert validate_schedule("daily", {}) == ["time is required in HH:MM format"]
        assert validate_schedule("yearly", {}) == ["Unknown schedule type: yearly"]
