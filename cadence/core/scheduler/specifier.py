"""Fluent builder that installs a recurrence rule into a calculator.

Example:
    ScheduleRunner(job, lambda run: run.every(5).minutes())
    ScheduleRunner(job, lambda run: run.every(1).days().at(3, 0))
    ScheduleRunner(job, lambda run: run.once_at(14, 30))
    ScheduleRunner(job, lambda run: run.once_in(10).seconds())
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, time as datetime_time, timedelta
from typing import Optional, Union, overload
from cadence.core.errors import configuration_error
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
from cadence.core.scheduler.calculator import RecurrenceCalculator


def _check_clock(hours: int, minutes: int, seconds: int) -> datetime_time:
    notes: list[str] = []
    if not 0 <= hours <= 23:
        notes.append(f'hours={hours} should be in the 0 to 23 range')
    if not 0 <= minutes <= 59:
        notes.append(f'minutes={minutes} should be in the 0 to 59 range')
    if not 0 <= seconds <= 59:
        notes.append(f'seconds={seconds} should be in the 0 to 59 range')
    if notes:
        raise configuration_error(
            'invalid time of day',
            notes=notes,
            help_text='pass a 24-hour clock time, e.g. once_at(14, 30)',
        )
    return datetime_time(hours, minutes, seconds)


class _UnitSet(ABC):
    """Picks the unit for a count given to every() or once_in()."""

    def __init__(self, count: int, calculator: RecurrenceCalculator) -> None:
        self._count = count
        self._calculator = calculator

    @abstractmethod
    def _install(self, unit: IntervalUnit) -> RecurrenceRule: ...

    def seconds(self) -> RecurrenceRule:
        return self._install(IntervalUnit.SECONDS)

    def minutes(self) -> RecurrenceRule:
        return self._install(IntervalUnit.MINUTES)

    def hours(self) -> RecurrenceRule:
        return self._install(IntervalUnit.HOURS)

    def weeks(self) -> RecurrenceRule:
        return self._install(IntervalUnit.WEEKS)


class PeriodUnitSet(_UnitSet):
    """Unit selection for ``every(n)``."""

    def _install(self, unit: IntervalUnit) -> RecurrenceRule:
        rule = IntervalSchedule(count=self._count, unit=unit)
        self._calculator.install(rule)
        return rule

    def days(self) -> DayPeriod:
        """Every n days, counted from the previous run.

        Chain ``.at(hh, mm)`` to pin a daily run to a time of day instead.
        """
        rule = self._install(IntervalUnit.DAYS)
        return DayPeriod(self._count, self._calculator, rule)

    def months(self) -> RecurrenceRule:
        """Every n calendar months, clamped to the end of shorter months."""
        return self._install(IntervalUnit.MONTHS)


class DayPeriod:
    """Outcome of ``every(n).days()``.

    The day interval is already installed; ``at()`` replaces it with a
    daily run at a fixed time of day.
    """

    def __init__(
        self, count: int, calculator: RecurrenceCalculator, rule: RecurrenceRule
    ) -> None:
        self._count = count
        self._calculator = calculator
        self.rule = rule

    def at(self, hours: int, minutes: int, seconds: int = 0) -> RecurrenceRule:
        if self._count != 1:
            raise configuration_error(
                'at() is only supported for every(1).days()',
                notes=[f'interval={self._count} days'],
                help_text='use every(1).days().at(hh, mm), or every(n).days() without at()',
            )
        rule = DailySchedule(time=_check_clock(hours, minutes, seconds))
        self._calculator.install(rule)
        return rule


class DelayUnitSet(_UnitSet):
    """Unit selection for ``once_in(n)``."""

    def _install(self, unit: IntervalUnit) -> RecurrenceRule:
        rule = DelaySchedule(delay=unit.to_timedelta(self._count))
        self._calculator.install(rule)
        return rule

    def days(self) -> RecurrenceRule:
        return self._install(IntervalUnit.DAYS)


class RunSpecifier:
    """Allows you to fluently specify when the job should run."""

    def __init__(self, calculator: RecurrenceCalculator) -> None:
        self._calculator = calculator

    def every(self, interval: int) -> PeriodUnitSet:
        """Runs the job according to the given interval (unit picked next)."""
        if interval < 1:
            raise configuration_error(
                'interval should be positive',
                notes=[f'interval={interval}'],
                help_text='use every(n) with n >= 1, e.g. every(5).minutes()',
            )
        return PeriodUnitSet(interval, self._calculator)

    def daily_at(self, hours: int, minutes: int, seconds: int = 0) -> RecurrenceRule:
        """Runs the job every day at the given time of day.

        Same rule as ``every(1).days().at(...)``; an invalid time leaves the
        previously installed rule in place.
        """
        rule = DailySchedule(time=_check_clock(hours, minutes, seconds))
        self._calculator.install(rule)
        return rule

    def now(self) -> RecurrenceRule:
        """Runs the job once, right away."""
        rule = NowSchedule()
        self._calculator.install(rule)
        return rule

    @overload
    def once_at(self, when: int, minutes: int, seconds: int = 0) -> RecurrenceRule: ...

    @overload
    def once_at(self, when: Union[datetime_time, datetime]) -> RecurrenceRule: ...

    def once_at(
        self,
        when: Union[int, datetime_time, datetime],
        minutes: Optional[int] = None,
        seconds: int = 0,
    ) -> RecurrenceRule:
        """Runs the job once at a time of day, or at an absolute instant.

        ``once_at(14, 30)`` and ``once_at(time(14, 30))`` run at the next
        14:30; ``once_at(datetime(...))`` runs at that instant.
        """
        rule: RecurrenceRule
        if isinstance(when, datetime):
            rule = InstantSchedule(at=when)
        elif isinstance(when, datetime_time):
            rule = TimeOfDaySchedule(time=when)
        else:
            if minutes is None:
                raise configuration_error(
                    'once_at(hours, minutes) requires minutes',
                    notes=[f'hours={when}'],
                    help_text='call once_at(hours, minutes) or once_at(time(...))',
                )
            rule = TimeOfDaySchedule(time=_check_clock(when, minutes, seconds))
        self._calculator.install(rule)
        return rule

    @overload
    def once_in(self, delay: int) -> DelayUnitSet: ...

    @overload
    def once_in(self, delay: timedelta) -> RecurrenceRule: ...

    def once_in(
        self, delay: Union[int, timedelta]
    ) -> Union[DelayUnitSet, RecurrenceRule]:
        """Runs the job once after the given delay.

        An int picks its unit next (``once_in(10).seconds()``); a timedelta
        is installed directly.
        """
        if isinstance(delay, timedelta):
            if delay < timedelta(0):
                raise configuration_error(
                    'delay should not be negative',
                    notes=[f'delay={delay}'],
                )
            rule = DelaySchedule(delay=delay)
            self._calculator.install(rule)
            return rule

        if delay < 0:
            raise configuration_error(
                'delay should not be negative',
                notes=[f'delay={delay}'],
                help_text='use once_in(n) with n >= 0, e.g. once_in(10).seconds()',
            )
        return DelayUnitSet(delay, self._calculator)
