# cadence/core/models/schedule.py
from __future__ import annotations
from datetime import datetime, time as datetime_time, timedelta
from enum import Enum
from typing import ClassVar, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self
from cadence.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)


class IntervalUnit(str, Enum):
    """Units a periodic interval can be expressed in.

    MONTHS is a calendar unit with no fixed length; every other unit maps
    onto a timedelta.
    """

    SECONDS = 'seconds'
    MINUTES = 'minutes'
    HOURS = 'hours'
    DAYS = 'days'
    WEEKS = 'weeks'
    MONTHS = 'months'

    @property
    def is_calendar(self) -> bool:
        return self is IntervalUnit.MONTHS

    def to_timedelta(self, count: int | float) -> timedelta:
        if self.is_calendar:
            raise ValueError(f'{self.value} have no fixed length')
        return timedelta(**{self.value: count})


class _Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    # One-shot rules fire once and leave the schedule exhausted.
    one_shot: ClassVar[bool] = True


class _WallClockRule(_Rule):
    time: datetime_time = Field(description='Time of day to run (HH:MM:SS)')

    @field_validator('time')
    @classmethod
    def drop_subseconds(cls, value: datetime_time) -> datetime_time:
        return value.replace(microsecond=0)


# =============================================================================
# One-shot rules
# =============================================================================


class NowSchedule(_Rule):
    """
    Run the job once, immediately after start.

    Example:
        - NowSchedule()
    """

    type: Literal['now'] = 'now'


class DelaySchedule(_Rule):
    """
    Run the job once, after a delay measured from start.

    Examples:
        - In 30 seconds: DelaySchedule(delay=timedelta(seconds=30))
        - Right away: DelaySchedule(delay=timedelta(0))
    """

    type: Literal['delay'] = 'delay'
    delay: timedelta = Field(description='Delay between start and the run (>= 0)')

    @model_validator(mode='after')
    def validate_non_negative(self) -> Self:
        """Ensure the delay does not point into the past."""
        report = ValidationReport('schedule')
        if self.delay < timedelta(0):
            report.add(
                ConfigurationError(
                    message='DelaySchedule delay must not be negative',
                    code=ErrorCode.CONFIG_INVALID_SCHEDULE,
                    notes=[f'delay: {self.delay}'],
                    help_text='use a delay of zero or more',
                )
            )
        raise_collected(report)
        return self


class TimeOfDaySchedule(_WallClockRule):
    """
    Run the job once at the next occurrence of a wall-clock time.

    If the time already passed today, the run happens tomorrow.
    Sub-second precision is dropped.

    Examples:
        - Once at 14:30 -> TimeOfDaySchedule(time=time(14, 30))
    """

    type: Literal['time_of_day'] = 'time_of_day'


class InstantSchedule(_Rule):
    """
    Run the job once at an absolute instant.

    The instant is returned as-is, even when it already lies in the past,
    in which case the run fires right after start.

    Example:
        - InstantSchedule(at=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))
    """

    type: Literal['instant'] = 'instant'
    at: datetime = Field(description='Timezone-aware instant to run at')

    @model_validator(mode='after')
    def validate_aware(self) -> Self:
        """Ensure the instant carries a timezone."""
        report = ValidationReport('schedule')
        if self.at.tzinfo is None or self.at.utcoffset() is None:
            report.add(
                ConfigurationError(
                    message='InstantSchedule requires a timezone-aware datetime',
                    code=ErrorCode.CONFIG_INVALID_SCHEDULE,
                    notes=[f'at: {self.at.isoformat()} has no tzinfo'],
                    help_text='pass e.g. datetime(..., tzinfo=timezone.utc)',
                )
            )
        raise_collected(report)
        return self


# =============================================================================
# Periodic rules
# =============================================================================


class IntervalSchedule(_Rule):
    """
    Run the job every N units, measured from the previous computation.

    Examples:
        - Every 30 seconds: IntervalSchedule(count=30, unit=IntervalUnit.SECONDS)
        - Every 5 minutes: IntervalSchedule(count=5, unit=IntervalUnit.MINUTES)
        - Every 2 weeks: IntervalSchedule(count=2, unit=IntervalUnit.WEEKS)
        - Every month: IntervalSchedule(count=1, unit=IntervalUnit.MONTHS)

    Months are calendar months on the configured timezone's wall clock; a
    day that does not exist in the target month is clamped to its last day
    (Jan 31 + 1 month -> Feb 28/29).
    """

    one_shot: ClassVar[bool] = False

    type: Literal['interval'] = 'interval'
    count: int = Field(ge=1, description='Number of units between runs (>= 1)')
    unit: IntervalUnit = Field(description='Unit of the interval')

    def interval(self) -> timedelta:
        """Interval between two consecutive runs.

        Raises:
            ValueError: for calendar units (months), which have no fixed length
        """
        return self.unit.to_timedelta(self.count)


class DailySchedule(_WallClockRule):
    """
    Run the job every day at a specific time.

    Examples:
        - Daily at 3:00 AM -> DailySchedule(time=time(3, 0, 0))
        - Daily at 15:30:00 -> DailySchedule(time=time(15, 30, 0))
    """

    one_shot: ClassVar[bool] = False

    type: Literal['daily'] = 'daily'


RecurrenceRule = Union[
    NowSchedule,
    DelaySchedule,
    TimeOfDaySchedule,
    InstantSchedule,
    IntervalSchedule,
    DailySchedule,
]
