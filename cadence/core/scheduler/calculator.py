# cadence/core/scheduler/calculator.py
from __future__ import annotations
import calendar
from datetime import date, datetime, time as datetime_time, timedelta, timezone
from zoneinfo import ZoneInfo
from typing import Optional
from cadence.core.defaults import DEFAULT_TIMEZONE
from cadence.core.errors import ErrorCode, ScheduleStateError
from cadence.core.logging import get_logger
from cadence.core.models.schedule import (
    DailySchedule,
    DelaySchedule,
    InstantSchedule,
    IntervalSchedule,
    IntervalUnit,
    NowSchedule,
    RecurrenceRule,
    TimeOfDaySchedule,
)

logger = get_logger('calculator')


def calculate_next_run(
    rule: RecurrenceRule, from_time: datetime, tz_str: str = DEFAULT_TIMEZONE
) -> datetime:
    """
    Calculate the next run time for a recurrence rule.

    Args:
        rule: Recurrence rule (now, delay, time of day, instant, interval, daily)
        from_time: Reference instant (must be timezone-aware)
        tz_str: Timezone for wall-clock rules (e.g., "UTC", "America/New_York")

    Returns:
        Next run time as UTC-aware datetime

    Raises:
        ValueError: If from_time is naive or the timezone is invalid
    """
    if from_time.tzinfo is None:
        raise ValueError('from_time must be timezone-aware')

    try:
        tz = ZoneInfo(tz_str)
    except Exception as e:
        raise ValueError(f"Invalid timezone '{tz_str}': {e}")

    match rule:
        case NowSchedule():
            next_run = from_time
        case DelaySchedule():
            next_run = from_time + rule.delay
        case InstantSchedule():
            next_run = rule.at
        case IntervalSchedule(unit=IntervalUnit.MONTHS):
            next_run = _add_months(from_time.astimezone(tz), rule.count)
        case IntervalSchedule():
            next_run = from_time + rule.interval()
        case TimeOfDaySchedule() | DailySchedule():
            next_run = _calculate_time_of_day(rule.time, from_time.astimezone(tz), tz)
        case _:
            raise ValueError(f'Unknown recurrence rule: {rule!r}')

    return next_run.astimezone(timezone.utc)


def _add_months(local_time: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months later.

    Days past the end of the target month are clamped to its last day.
    """
    index = local_time.month - 1 + months
    year = local_time.year + index // 12
    month = index % 12 + 1
    day = min(local_time.day, calendar.monthrange(year, month)[1])
    return local_time.replace(year=year, month=month, day=day)


def _calculate_time_of_day(
    at: datetime_time, local_time: datetime, tz: ZoneInfo
) -> datetime:
    """Next occurrence of a wall-clock time strictly after local_time.

    Nonexistent local times (spring-forward gaps) are skipped.
    """
    for day_offset in range(0, 3):
        candidate_date = (local_time + timedelta(days=day_offset)).date()
        candidate = _resolve_local_datetime(
            date_value=candidate_date,
            hour=at.hour,
            minute=at.minute,
            second=at.second,
            tz=tz,
        )
        if candidate is None or candidate <= local_time:
            continue
        return candidate

    raise RuntimeError('Could not calculate next time-of-day run within 2 days')


def _resolve_local_datetime(
    date_value: date,
    hour: int,
    minute: int,
    second: int,
    tz: ZoneInfo,
) -> Optional[datetime]:
    """
    Resolve local wall-clock date/time into a real zoned datetime.

    Returns None for nonexistent local times (spring-forward gaps).
    For ambiguous local times (fall-back), returns the earliest instant.
    """
    naive = datetime(
        year=date_value.year,
        month=date_value.month,
        day=date_value.day,
        hour=hour,
        minute=minute,
        second=second,
    )
    valid: list[datetime] = []
    for fold in (0, 1):
        candidate = naive.replace(tzinfo=tz, fold=fold)
        roundtrip = candidate.astimezone(timezone.utc).astimezone(tz)
        if roundtrip.replace(tzinfo=None) == naive:
            valid.append(candidate)

    if not valid:
        return None

    valid.sort(key=lambda dt: dt.astimezone(timezone.utc))
    return valid[0]


class RecurrenceCalculator:
    """Holds the recurrence rule of one schedule and projects next run times.

    The rule is installed once, before the schedule starts; installing again
    replaces it (last writer wins). ``calculate`` is pure: it keeps no
    reference to the instant it is given.
    """

    def __init__(self, tz_str: str = DEFAULT_TIMEZONE) -> None:
        self.tz_str = tz_str
        self._rule: RecurrenceRule | None = None

    @property
    def rule(self) -> RecurrenceRule | None:
        return self._rule

    @property
    def installed(self) -> bool:
        return self._rule is not None

    @property
    def one_shot(self) -> bool:
        return self._rule is not None and self._rule.one_shot

    def install(self, rule: RecurrenceRule) -> None:
        if self._rule is not None:
            logger.debug(f'Replacing recurrence rule {self._rule!r} with {rule!r}')
        self._rule = rule

    def calculate(self, now: datetime) -> datetime:
        """Next run time for the installed rule, relative to ``now``."""
        if self._rule is None:
            raise ScheduleStateError(
                message='no recurrence rule installed',
                code=ErrorCode.SCHEDULE_NO_RULE,
                notes=['calculate() was called before install()'],
                help_text='install a rule, e.g. through RunSpecifier.every(5).minutes()',
            )
        return calculate_next_run(self._rule, now, self.tz_str)
