"""Next-run calculation for scheduled tasks.

:func:`next_run` is a pure function of the schedule type, its configuration,
the previous run and "now". Wall-clock policies (daily, weekly, monthly and
cron) are evaluated in the configuration's ``timezone`` (an IANA name,
default ``UTC``); results are always aware UTC datetimes.

Supported configurations:

========== ==========================================================
Type       Configuration keys
========== ==========================================================
once       ``datetime`` (ISO 8601 string or datetime)
interval   ``intervalMinutes`` (positive number)
daily      ``time`` (``HH:MM``)
weekly     ``time``, ``dayOfWeek`` (0 = Sunday ... 6 = Saturday)
monthly    ``time``, ``dayOfMonth`` (1-31, clamped to the month's length)
cron       ``expression`` (five fields: minute hour day month weekday)
========== ==========================================================
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Mapping
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from litestar_automation.core.clock import ensure_aware, utc_now
from litestar_automation.core.types import ScheduleType
from litestar_automation.exceptions import ScheduleValidationError

__all__ = ["next_run", "validate_schedule"]


def _option(config: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if config.get(key) is not None:
            return config[key]
    return None


def _schedule_type(value: ScheduleType | str) -> ScheduleType:
    try:
        return ScheduleType(str(value).lower())
    except ValueError:
        raise ScheduleValidationError([f"Unknown schedule type: {value}"]) from None


def _zone(config: Mapping[str, Any]) -> ZoneInfo:
    name = config.get("timezone") or "UTC"
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        raise ScheduleValidationError([f"Unknown timezone: {name}"]) from None


def _time_of_day(config: Mapping[str, Any]) -> time:
    raw = config.get("time")
    if not isinstance(raw, str):
        raise ScheduleValidationError(["time is required in HH:MM format"])
    hours, _, minutes = raw.strip().partition(":")
    if not (hours.isdigit() and minutes.isdigit()):
        raise ScheduleValidationError([f"Invalid time '{raw}', expected HH:MM"])
    if not (0 <= int(hours) <= 23 and 0 <= int(minutes) <= 59):
        raise ScheduleValidationError([f"Time '{raw}' is out of range"])
    return time(int(hours), int(minutes))


def _bounded_int(config: Mapping[str, Any], low: int, high: int, *keys: str) -> int:
    raw = _option(config, *keys)
    if isinstance(raw, bool) or not isinstance(raw, int | str) or not str(raw).isdigit():
        raise ScheduleValidationError([f"{keys[0]} must be an integer between {low} and {high}"])
    value = int(raw)
    if not low <= value <= high:
        raise ScheduleValidationError([f"{keys[0]} must be an integer between {low} and {high}"])
    return value


def _at(day: date, at: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, at, tzinfo=tz)


def _once(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    raw = config.get("datetime")
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, str):
        try:
            moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            raise ScheduleValidationError([f"Invalid datetime '{raw}', expected ISO 8601"]) from None
    else:
        raise ScheduleValidationError(["datetime is required for once schedules"])
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_zone(config))
    return moment


def _interval(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    minutes = _option(config, "intervalMinutes", "interval_minutes")
    if isinstance(minutes, bool) or not isinstance(minutes, int | float) or minutes <= 0:
        raise ScheduleValidationError(["intervalMinutes must be a positive number"])
    step = timedelta(minutes=minutes)
    candidate = (last_run or now) + step
    if candidate <= now:
        # Jump straight to the first slot after now.
        missed = (now - candidate) // step + 1
        candidate += step * missed
    return candidate


def _daily(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    tz = _zone(config)
    at = _time_of_day(config)
    today = now.astimezone(tz).date()
    candidate = _at(today, at, tz)
    if candidate <= now:
        candidate = _at(today + timedelta(days=1), at, tz)
    return candidate


def _weekly(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    tz = _zone(config)
    at = _time_of_day(config)
    target = _bounded_int(config, 0, 6, "dayOfWeek", "day_of_week")
    today = now.astimezone(tz).date()
    current = (today.weekday() + 1) % 7
    candidate = _at(today + timedelta(days=(target - current) % 7), at, tz)
    if candidate <= now:
        candidate = _at(candidate.date() + timedelta(days=7), at, tz)
    return candidate


def _month_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def _monthly(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    tz = _zone(config)
    at = _time_of_day(config)
    day = _bounded_int(config, 1, 31, "dayOfMonth", "day_of_month")
    today = now.astimezone(tz).date()
    candidate = _at(_month_day(today.year, today.month, day), at, tz)
    if candidate <= now:
        year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        candidate = _at(_month_day(year, month, day), at, tz)
    return candidate


def _cron(config: Mapping[str, Any], last_run: datetime | None, now: datetime) -> datetime:
    expression = config.get("expression")
    if not isinstance(expression, str) or len(expression.split()) != 5:
        raise ScheduleValidationError(["expression must be a five-field cron expression"])
    if not croniter.is_valid(expression):
        raise ScheduleValidationError([f"Invalid cron expression '{expression}'"])
    tz = _zone(config)
    schedule = croniter(expression, now.astimezone(tz))
    candidate = schedule.get_next(datetime)
    while candidate <= now:
        candidate = schedule.get_next(datetime)
    return candidate


_POLICIES: dict[ScheduleType, Callable[[Mapping[str, Any], datetime | None, datetime], datetime]] = {
    ScheduleType.ONCE: _once,
    ScheduleType.INTERVAL: _interval,
    ScheduleType.DAILY: _daily,
    ScheduleType.WEEKLY: _weekly,
    ScheduleType.MONTHLY: _monthly,
    ScheduleType.CRON: _cron,
}


def next_run(
    schedule_type: ScheduleType | str,
    schedule_config: Mapping[str, Any] | None,
    last_run: datetime | None = None,
    *,
    now: datetime | None = None,
) -> datetime:
    """Compute when a task is next due.

    For every type except ``once`` the result is strictly later than ``now``.
    ``once`` returns the configured moment verbatim, even if it has passed.

    Args:
        schedule_type: The recurrence policy.
        schedule_config: Policy parameters.
        last_run: The previous run, used as the base of ``interval``.
        now: The current time. Defaults to the wall clock.

    Returns:
        The next run time as an aware UTC datetime.

    Raises:
        ScheduleValidationError: If the type or configuration is invalid.

    Example:
        >>> next_run("daily", {"time": "09:00"}, now=datetime(2024, 5, 1, 9, 5, tzinfo=timezone.utc))
        datetime.datetime(2024, 5, 2, 9, 0, tzinfo=datetime.timezone.utc)
    """
    policy = _POLICIES[_schedule_type(schedule_type)]
    if not isinstance(schedule_config, Mapping):
        raise ScheduleValidationError(["scheduleConfig must be an object"])
    current = ensure_aware(now) if now is not None else utc_now()
    previous = ensure_aware(last_run) if last_run is not None else None
    return policy(schedule_config, previous, current).astimezone(timezone.utc)


def validate_schedule(schedule_type: ScheduleType | str, schedule_config: Mapping[str, Any] | None) -> list[str]:
    """Check a schedule without raising.

    Args:
        schedule_type: The recurrence policy.
        schedule_config: Policy parameters.

    Returns:
        List of validation error messages (empty if valid).
    """
    try:
        next_run(schedule_type, schedule_config)
    except ScheduleValidationError as e:
        return e.errors
    return []
