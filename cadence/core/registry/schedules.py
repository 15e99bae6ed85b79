# cadence/core/registry/schedules.py
from __future__ import annotations
from datetime import timedelta
from typing import Dict, Iterator, Mapping, Union
from cadence.core.errors import ErrorCode, RegistryError
from cadence.core.logging import get_logger, schedule_logger
from cadence.core.scheduler.runner import ScheduleRunner

logger = get_logger('registry')


class NotRegistered(RegistryError, KeyError):
    """Raised when a schedule name is not present in the registry.

    Inherits from KeyError so Mapping.__contains__ works correctly
    (it catches KeyError to implement the ``in`` operator).
    """

    def __init__(self, schedule_name: str) -> None:
        RegistryError.__init__(
            self,
            message=f"schedule '{schedule_name}' not registered",
            code=ErrorCode.SCHEDULE_NOT_REGISTERED,
            notes=[f"requested schedule: '{schedule_name}'"],
            help_text='add the runner with registry.add(runner) before use',
        )
        self.schedule_name = schedule_name


class DuplicateScheduleNameError(RegistryError):
    """Raised when a schedule name is registered more than once."""

    def __init__(self, schedule_name: str) -> None:
        super().__init__(
            message=f"duplicate schedule name '{schedule_name}'",
            code=ErrorCode.SCHEDULE_DUPLICATE_NAME,
            notes=['a runner with this name already exists'],
            help_text='pass a unique name=... to ScheduleRunner',
        )
        self.schedule_name = schedule_name


class ScheduleRegistry(Mapping[str, ScheduleRunner]):
    """Collection of independently owned schedule runners, keyed by name.

    The registry only forwards start/stop calls; runners share no state.
    """

    def __init__(self) -> None:
        self._data: Dict[str, ScheduleRunner] = {}

    def __getitem__(self, key: str) -> ScheduleRunner:
        try:
            return self._data[key]
        except KeyError:
            raise NotRegistered(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def add(self, runner: ScheduleRunner) -> ScheduleRunner:
        if runner.name in self._data:
            raise DuplicateScheduleNameError(runner.name)
        self._data[runner.name] = runner
        schedule_logger('registry', runner.name).debug('registered')
        return runner

    def remove(self, name: str) -> ScheduleRunner:
        """Stop (without waiting) and forget a schedule."""
        runner = self[name]
        runner.stop()
        del self._data[name]
        return runner

    def start_all(self) -> list[str]:
        """Start every registered schedule; returns the names actually started."""
        started = [name for name, runner in self._data.items() if runner.start()]
        logger.info(f'Started {len(started)} of {len(self._data)} schedule(s)')
        return started

    def stop_all(self) -> list[str]:
        """Stop every running schedule; returns the names actually stopped."""
        return [name for name, runner in self._data.items() if runner.stop()]

    def stop_all_and_wait(
        self, timeout: Union[float, timedelta, None] = None
    ) -> list[str]:
        """Stop every schedule, waiting for each in-flight job in turn.

        ``timeout`` applies per schedule.
        """
        return [
            name
            for name, runner in self._data.items()
            if runner.stop_and_wait(timeout)
        ]

    def running_names(self) -> list[str]:
        return [name for name, runner in self._data.items() if runner.running]
