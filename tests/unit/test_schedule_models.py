"""Tests for recurrence rule models, validators, and boundaries."""

from __future__ import annotations

from datetime import datetime, time as datetime_time, timedelta, timezone

import pytest
from pydantic import ValidationError

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


@pytest.mark.unit
class TestIntervalSchedule:
    """Tests for IntervalSchedule model."""

    def test_valid_interval(self) -> None:
        schedule = IntervalSchedule(count=5, unit=IntervalUnit.MINUTES)

        assert schedule.count == 5
        assert schedule.unit is IntervalUnit.MINUTES
        assert schedule.type == 'interval'
        assert schedule.one_shot is False

    def test_unit_accepts_string_value(self) -> None:
        schedule = IntervalSchedule(count=2, unit='hours')

        assert schedule.unit is IntervalUnit.HOURS

    def test_interval(self) -> None:
        assert IntervalSchedule(count=45, unit='seconds').interval() == timedelta(seconds=45)
        assert IntervalSchedule(count=2, unit='minutes').interval() == timedelta(minutes=2)
        assert IntervalSchedule(count=1, unit='days').interval() == timedelta(days=1)
        assert IntervalSchedule(count=1, unit='weeks').interval() == timedelta(days=7)

    def test_months_have_no_fixed_interval(self) -> None:
        schedule = IntervalSchedule(count=1, unit='months')

        assert schedule.unit is IntervalUnit.MONTHS
        assert schedule.unit.is_calendar is True
        with pytest.raises(ValueError, match='no fixed length'):
            schedule.interval()

    def test_zero_count_raises_validation_error(self) -> None:
        """count=0 violates ge=1 constraint via pydantic ValidationError."""
        with pytest.raises(ValidationError):
            IntervalSchedule(count=0, unit=IntervalUnit.SECONDS)

    def test_negative_count_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            IntervalSchedule(count=-3, unit=IntervalUnit.MINUTES)

    def test_unknown_unit_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            IntervalSchedule(count=1, unit='fortnights')

    def test_is_frozen(self) -> None:
        schedule = IntervalSchedule(count=5, unit=IntervalUnit.MINUTES)

        with pytest.raises(ValidationError):
            schedule.count = 10  # type: ignore[misc]


@pytest.mark.unit
class TestDailySchedule:
    """Tests for DailySchedule model."""

    def test_valid(self) -> None:
        schedule = DailySchedule(time=datetime_time(3, 0, 0))

        assert schedule.time == datetime_time(3, 0, 0)
        assert schedule.type == 'daily'
        assert schedule.one_shot is False

    def test_subseconds_dropped(self) -> None:
        schedule = DailySchedule(time=datetime_time(3, 0, 0, 999_999))

        assert schedule.time == datetime_time(3, 0, 0)


@pytest.mark.unit
class TestOneShotSchedules:
    """Tests for the one-shot rule models."""

    def test_now(self) -> None:
        schedule = NowSchedule()

        assert schedule.type == 'now'
        assert schedule.one_shot is True

    def test_delay_zero_allowed(self) -> None:
        schedule = DelaySchedule(delay=timedelta(0))

        assert schedule.delay == timedelta(0)
        assert schedule.one_shot is True

    def test_negative_delay_raises_configuration_error(self) -> None:
        """Negative delay raises ConfigurationError E205."""
        with pytest.raises(ConfigurationError) as exc_info:
            DelaySchedule(delay=timedelta(seconds=-1))

        exc = exc_info.value
        assert exc.code == ErrorCode.CONFIG_INVALID_SCHEDULE
        assert 'negative' in exc.message
        assert exc.help_text is not None

    def test_time_of_day_drops_subseconds(self) -> None:
        schedule = TimeOfDaySchedule(time=datetime_time(14, 30, 15, 500))

        assert schedule.time == datetime_time(14, 30, 15)
        assert schedule.one_shot is True

    def test_time_of_day_rejects_out_of_range_string(self) -> None:
        with pytest.raises(ValidationError):
            TimeOfDaySchedule(time='25:00:00')

    def test_instant_aware(self) -> None:
        at = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)

        schedule = InstantSchedule(at=at)

        assert schedule.at == at
        assert schedule.one_shot is True

    def test_instant_naive_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            InstantSchedule(at=datetime(2025, 6, 1, 9, 0))

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_SCHEDULE
        assert any('no tzinfo' in note for note in exc_info.value.notes)

    def test_rules_compare_by_value(self) -> None:
        assert NowSchedule() == NowSchedule()
        assert DelaySchedule(delay=timedelta(seconds=5)) == DelaySchedule(
            delay=timedelta(seconds=5)
        )
