"""Tests for the fluent RunSpecifier rule builder."""

from __future__ import annotations

from datetime import datetime, time as datetime_time, timedelta, timezone

import pytest

from cadence.core.errors import ConfigurationError, ErrorCode
from cadence.core.models.schedule import (
    DailySchedule,
    DelaySchedule,
    InstantSchedule,
    IntervalSchedule,
    IntervalUnit,
    NowSchedule,
    TimeOfDaySchedule,
)
from cadence.core.scheduler.calculator import RecurrenceCalculator
from cadence.core.scheduler.specifier import (
    DayPeriod,
    DelayUnitSet,
    PeriodUnitSet,
    RunSpecifier,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def calculator() -> RecurrenceCalculator:
    return RecurrenceCalculator()


@pytest.fixture
def run(calculator: RecurrenceCalculator) -> RunSpecifier:
    return RunSpecifier(calculator)


class TestEvery:
    """Tests for every(n).<unit>()."""

    @pytest.mark.parametrize(
        'unit',
        [u for u in IntervalUnit if u is not IntervalUnit.DAYS],
    )
    def test_installs_interval(
        self, run: RunSpecifier, calculator: RecurrenceCalculator, unit: IntervalUnit
    ) -> None:
        rule = getattr(run.every(3), unit.value)()

        assert rule == IntervalSchedule(count=3, unit=unit)
        assert calculator.rule == rule

    def test_days_installs_interval_right_away(
        self, run: RunSpecifier, calculator: RecurrenceCalculator
    ) -> None:
        period = run.every(2).days()

        assert isinstance(period, DayPeriod)
        assert period.rule == IntervalSchedule(count=2, unit=IntervalUnit.DAYS)
        assert calculator.rule == period.rule

    def test_every_day_at_installs_daily_rule(
        self, run: RunSpecifier, calculator: RecurrenceCalculator
    ) -> None:
        rule = run.every(1).days().at(3, 0)

        assert rule == DailySchedule(time=datetime_time(3, 0))
        assert calculator.rule == rule

    def test_every_day_at_with_seconds(self, run: RunSpecifier) -> None:
        assert run.every(1).days().at(23, 59, 30) == DailySchedule(
            time=datetime_time(23, 59, 30)
        )

    def test_every_n_days_at_rejected(
        self, run: RunSpecifier, calculator: RecurrenceCalculator
    ) -> None:
        """Only a one-day period can be pinned to a time of day."""
        with pytest.raises(ConfigurationError) as exc_info:
            run.every(3).days().at(3, 0)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_SCHEDULE
        assert 'interval=3 days' in exc_info.value.notes
        assert calculator.rule == IntervalSchedule(count=3, unit=IntervalUnit.DAYS)

    def test_every_day_at_out_of_range(self, run: RunSpecifier) -> None:
        with pytest.raises(ConfigurationError, match='invalid time of day'):
            run.every(1).days().at(24, 0)

    def test_months(self, run: RunSpecifier, calculator: RecurrenceCalculator) -> None:
        rule = run.every(1).months()

        assert rule == IntervalSchedule(count=1, unit=IntervalUnit.MONTHS)
        assert calculator.rule == rule

    def test_once_in_has_no_months(self, run: RunSpecifier) -> None:
        """Delays must have a fixed length."""
        assert not hasattr(run.once_in(1), 'months')

    def test_every_returns_unit_set(self, run: RunSpecifier) -> None:
        assert isinstance(run.every(1), PeriodUnitSet)

    @pytest.mark.parametrize('interval', [0, -1])
    def test_non_positive_interval_rejected(self, run: RunSpecifier, interval: int) -> None:
        """Zero and negative intervals fail at build time, never in the loop."""
        with pytest.raises(ConfigurationError) as exc_info:
            run.every(interval)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_SCHEDULE
        assert 'positive' in exc_info.value.message

    def test_daily_at(self, run: RunSpecifier, calculator: RecurrenceCalculator) -> None:
        rule = run.daily_at(3, 15)

        assert rule == DailySchedule(time=datetime_time(3, 15))
        assert calculator.rule == rule


class TestOnce:
    """Tests for now(), once_at() and once_in()."""

    def test_now(self, run: RunSpecifier, calculator: RecurrenceCalculator) -> None:
        assert run.now() == NowSchedule()
        assert calculator.rule == NowSchedule()

    def test_once_at_hours_minutes(self, run: RunSpecifier) -> None:
        assert run.once_at(14, 30) == TimeOfDaySchedule(time=datetime_time(14, 30))

    def test_once_at_time(self, run: RunSpecifier) -> None:
        rule = run.once_at(datetime_time(14, 30, 45))

        assert rule == TimeOfDaySchedule(time=datetime_time(14, 30, 45))

    def test_once_at_datetime(self, run: RunSpecifier) -> None:
        at = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)

        assert run.once_at(at) == InstantSchedule(at=at)

    def test_once_at_naive_datetime_rejected(self, run: RunSpecifier) -> None:
        with pytest.raises(ConfigurationError):
            run.once_at(datetime(2025, 6, 1, 9, 0))

    def test_once_at_without_minutes_rejected(self, run: RunSpecifier) -> None:
        with pytest.raises(ConfigurationError, match='requires minutes'):
            run.once_at(14)  # type: ignore[call-overload]

    @pytest.mark.parametrize(
        ('hours', 'minutes', 'bad'),
        [(24, 0, 'hours=24'), (-1, 0, 'hours=-1'), (12, 60, 'minutes=60'), (12, -5, 'minutes=-5')],
    )
    def test_once_at_out_of_range(
        self, run: RunSpecifier, hours: int, minutes: int, bad: str
    ) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            run.once_at(hours, minutes)

        assert any(bad in note for note in exc_info.value.notes)

    def test_once_at_reports_both_fields(self, run: RunSpecifier) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            run.once_at(30, 99)

        assert len(exc_info.value.notes) == 2

    def test_once_in_unit(self, run: RunSpecifier, calculator: RecurrenceCalculator) -> None:
        unit_set = run.once_in(10)
        assert isinstance(unit_set, DelayUnitSet)

        rule = unit_set.seconds()

        assert rule == DelaySchedule(delay=timedelta(seconds=10))
        assert calculator.rule == rule

    def test_once_in_zero(self, run: RunSpecifier) -> None:
        assert run.once_in(0).minutes() == DelaySchedule(delay=timedelta(0))

    def test_once_in_timedelta(self, run: RunSpecifier) -> None:
        rule = run.once_in(timedelta(minutes=2))

        assert rule == DelaySchedule(delay=timedelta(minutes=2))

    def test_once_in_negative_rejected(self, run: RunSpecifier) -> None:
        with pytest.raises(ConfigurationError):
            run.once_in(-1)
        with pytest.raises(ConfigurationError):
            run.once_in(timedelta(seconds=-1))

    def test_failed_build_keeps_previous_rule(
        self, run: RunSpecifier, calculator: RecurrenceCalculator
    ) -> None:
        run.every(5).minutes()

        with pytest.raises(ConfigurationError):
            run.once_at(99, 0)

        assert calculator.rule == IntervalSchedule(count=5, unit=IntervalUnit.MINUTES)

    def test_once_in_days(self, run: RunSpecifier) -> None:
        assert run.once_in(2).days() == DelaySchedule(delay=timedelta(days=2))


class TestUnitSet:
    def test_base_cannot_be_instantiated(self, calculator: RecurrenceCalculator) -> None:
        from cadence.core.scheduler.specifier import _UnitSet

        with pytest.raises(TypeError):
            _UnitSet(1, calculator)  # type: ignore[abstract]
