# cadence/core/scheduler/state.py
"""
In-memory state of one schedule.

The running flag, the cancellation token and the execution handle travel
together in one immutable ScheduleState value that the runner swaps under
its lock, so no reader ever sees one of them set without the others.
"""

from __future__ import annotations
import asyncio
import threading
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Any, Optional
from cadence.core.logging import get_logger
from cadence.core.types.status import ScheduleStatus
from cadence.core.utils.loop_runner import LoopRunner, LoopRunnerError

logger = get_logger('runner')


class CancelToken:
    """One-way cancellation signal shared by a runner and its tick loop.

    ``cancel`` may be called from any thread. The tick loop waits on the
    token with ``sleep``, which returns early once the token is cancelled.
    """

    def __init__(self, loop_runner: LoopRunner) -> None:
        self._loop_runner = loop_runner
        self._flag = threading.Event()
        self._wakeup = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._flag.is_set()

    def cancel(self) -> None:
        if self._flag.is_set():
            return
        self._flag.set()
        try:
            self._loop_runner.call_soon(self._wakeup.set)
        except LoopRunnerError:
            # Loop already shut down: nothing can be waiting on the token.
            logger.debug('Loop runner closed; cancellation wake-up skipped')

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``. Returns True if the token was cancelled."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=max(0.0, seconds))
        except asyncio.TimeoutError:
            pass
        return self.cancelled


@dataclass(frozen=True)
class ScheduleState:
    """Tagged schedule state: IDLE, or ARMED/EXECUTING with token and handle."""

    status: ScheduleStatus = ScheduleStatus.IDLE
    token: Optional[CancelToken] = None
    future: Optional[Future[Any]] = None

    def __post_init__(self) -> None:
        carries_handles = self.token is not None and self.future is not None
        if self.status.is_running != carries_handles:
            raise ValueError(
                f'{self.status.name} state must '
                f'{"carry" if self.status.is_running else "not carry"} '
                'a cancellation token and an execution handle'
            )

    @classmethod
    def idle(cls) -> ScheduleState:
        return cls()

    @classmethod
    def armed(cls, token: CancelToken, future: Future[Any]) -> ScheduleState:
        return cls(ScheduleStatus.ARMED, token, future)

    @property
    def running(self) -> bool:
        return self.status.is_running

    def with_status(self, status: ScheduleStatus) -> ScheduleState:
        """Same token and handle, new running status (ARMED <-> EXECUTING)."""
        return replace(self, status=status)
