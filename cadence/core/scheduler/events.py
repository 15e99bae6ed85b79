# cadence/core/scheduler/events.py
"""Job lifecycle notifications and the observer list that delivers them."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, Generic, Optional, TypeVar, Union
from cadence.core.logging import get_logger

logger = get_logger('runner')

E = TypeVar('E')


@dataclass(frozen=True)
class JobStartedEvent:
    """Raised right before the job body runs."""

    schedule_name: str
    start_time: datetime


@dataclass(frozen=True)
class JobEndedEvent:
    """Raised after the job body returned or failed, before the loop re-arms.

    ``next_run`` is None when the schedule will not run again (one-shot rule).
    """

    schedule_name: str
    exception: Optional[BaseException]
    start_time: datetime
    end_time: datetime
    next_run: Optional[datetime]

    @property
    def succeeded(self) -> bool:
        return self.exception is None

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


class Observers(Generic[E]):
    """Callbacks invoked synchronously, in registration order."""

    def __init__(
        self,
        kind: str,
        log: Union[logging.Logger, logging.LoggerAdapter, None] = None,
    ) -> None:
        self.kind = kind
        self._log = log or logger
        self._callbacks: list[Callable[[E], object]] = []

    def add(self, callback: Callable[[E], object]) -> Callable[[E], object]:
        self._callbacks.append(callback)
        return callback

    def remove(self, callback: Callable[[E], object]) -> None:
        self._callbacks.remove(callback)

    def __len__(self) -> int:
        return len(self._callbacks)

    def notify(self, event: E) -> None:
        # Snapshot so observers may (un)subscribe while being notified
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                self._log.error(
                    f'{self.kind} observer {getattr(callback, "__name__", callback)!r} failed: {e}',
                    exc_info=True,
                )
