# cadence/core/scheduler/runner.py
from __future__ import annotations
import asyncio
import inspect
import threading
from concurrent.futures import wait as wait_futures
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union
from cadence.core.errors import ConfigurationError, ErrorCode
from cadence.core.logging import schedule_logger
from cadence.core.models.config import SchedulerConfig
from cadence.core.models.schedule import RecurrenceRule
from cadence.core.scheduler.calculator import RecurrenceCalculator
from cadence.core.scheduler.events import JobEndedEvent, JobStartedEvent, Observers
from cadence.core.scheduler.specifier import RunSpecifier
from cadence.core.scheduler.state import CancelToken, ScheduleState
from cadence.core.types.status import ScheduleStatus
from cadence.core.utils.loop_runner import LoopRunner, get_shared_runner


Job = Callable[[], Any]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleRunner:
    """
    Runs one job on the schedule described by one recurrence rule.

    Responsibilities:
    1. Hold the job, its RecurrenceCalculator and its ScheduleState
    2. Start/stop safely from any thread (start/stop are idempotent)
    3. Drive the tick loop: wait for next_run, run the job once, capture
       failure, recompute next_run, re-arm
    4. Notify job-started/job-ended observers on every tick

    The tick loop is a coroutine on a LoopRunner thread. Plain callables run
    in the loop's default executor, coroutine functions are awaited on the
    loop. Job failures never stop the schedule; only stop() does, or the
    single tick of a one-shot rule.
    """

    def __init__(
        self,
        job: Job,
        specifier: Optional[Callable[[RunSpecifier], object]] = None,
        *,
        rule: Optional[RecurrenceRule] = None,
        name: Optional[str] = None,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Clock] = None,
        loop_runner: Optional[LoopRunner] = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.name = name or getattr(job, '__name__', repr(job))
        self._job = job
        self._clock: Clock = clock or utc_now
        self._loop_runner = loop_runner
        self._calculator = RecurrenceCalculator(self.config.timezone)

        # Guards _state; never held while blocking on the execution handle
        self._lock = threading.Lock()
        self._state = ScheduleState.idle()
        # Single writer: start() and the tick loop
        self._next_run: Optional[datetime] = None
        # Serializes job invocations across a stop/start overlap
        self._exec_lock = asyncio.Lock()
        self._job_thread: Optional[int] = None

        self._log = schedule_logger('runner', self.name)

        self._job_started: Observers[JobStartedEvent] = Observers('job-started', self._log)
        self._job_ended: Observers[JobEndedEvent] = Observers('job-ended', self._log)

        if rule is not None:
            self._calculator.install(rule)
        if specifier is not None:
            specifier(RunSpecifier(self._calculator))
        if not self._calculator.installed:
            raise ConfigurationError(
                message=f"schedule '{self.name}' has no recurrence rule",
                code=ErrorCode.CONFIG_MISSING_RULE,
                notes=['neither a specifier callback nor a rule installed one'],
                help_text='pass e.g. lambda run: run.every(5).minutes(), or rule=...',
            )

    def __repr__(self) -> str:
        return (
            f'ScheduleRunner(name={self.name!r}, rule={self.rule!r}, '
            f'status={self.status.value}, next_run={self._next_run})'
        )

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        """True if the schedule is started, False otherwise."""
        with self._lock:
            return self._state.running

    @property
    def status(self) -> ScheduleStatus:
        with self._lock:
            return self._state.status

    @property
    def next_run(self) -> Optional[datetime]:
        """Date and time of the next job run, None if never started.

        Read without the lock: only start() and the tick loop write it, so a
        reader racing a tick sees either the previous or the new value.
        """
        return self._next_run

    @property
    def rule(self) -> Optional[RecurrenceRule]:
        return self._calculator.rule

    @property
    def calculator(self) -> RecurrenceCalculator:
        return self._calculator

    def on_job_started(
        self, callback: Callable[[JobStartedEvent], object]
    ) -> Callable[[JobStartedEvent], object]:
        """Register a job-started observer (usable as a decorator)."""
        return self._job_started.add(callback)

    def on_job_ended(
        self, callback: Callable[[JobEndedEvent], object]
    ) -> Callable[[JobEndedEvent], object]:
        """Register a job-ended observer (usable as a decorator)."""
        return self._job_ended.add(callback)

    # ------------------------------------------------------------------
    # Start / stop
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Starts the schedule.

        Returns:
            True if the schedule was started, False if it was already running
            and the call did nothing
        """
        with self._lock:
            if self._state.running:
                return False

            next_run = self._calculator.calculate(self._clock())

            if self._loop_runner is None:
                self._loop_runner = get_shared_runner()
            token = CancelToken(self._loop_runner)
            future = self._loop_runner.submit(self._run, token, next_run)
            self._state = ScheduleState.armed(token, future)
            self._next_run = next_run

        self._log.info(f'started, next_run={next_run}')
        return True

    def stop(self) -> bool:
        """Stops the schedule without waiting for a running job to end.

        Returns:
            True if the schedule was stopped, False if it wasn't running and
            the call did nothing
        """
        return self._stop(block=False, timeout=None)

    def stop_and_wait(
        self, timeout: Union[float, timedelta, None] = None
    ) -> bool:
        """Stops the schedule and waits for the running job, if any, to end.

        Args:
            timeout: Seconds (or timedelta) to wait; defaults to
                config.stop_timeout_seconds, None waits without limit

        Returns:
            True if the schedule was stopped, False if it wasn't running and
            the call did nothing. The result does not reflect whether the
            wait timed out.
        """
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        elif timeout is None:
            timeout = self.config.stop_timeout_seconds
        return self._stop(block=True, timeout=timeout)

    def _stop(self, block: bool, timeout: Optional[float]) -> bool:
        with self._lock:
            state = self._state
            if not state.running:
                return False
            assert state.token is not None and state.future is not None
            state.token.cancel()
            self._state = ScheduleState.idle()

        self._log.info('stopped')

        if block:
            self._wait_for_loop(state, timeout)
        return True

    def _wait_for_loop(self, state: ScheduleState, timeout: Optional[float]) -> None:
        assert state.future is not None
        own_thread = threading.get_ident() == self._job_thread
        if own_thread or (self._loop_runner and self._loop_runner.in_loop_thread()):
            # The tick loop would be waiting on itself
            self._log.warning(
                'or observer; not waiting'
            )
            return

        done, _ = wait_futures([state.future], timeout=timeout)
        if not done:
            self._log.warning(f'job still running after {timeout}s stop timeout')

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    def _transition(self, token: CancelToken, status: ScheduleStatus) -> bool:
        """Move our own state to ``status``. False if stop() already replaced it."""
        with self._lock:
            if self._state.token is not token:
                return False
            self._state = self._state.with_status(status)
            return True

    def _publish_next_run(self, token: CancelToken, next_run: Optional[datetime]) -> bool:
        # A loop that was stopped (and maybe replaced by a newer start) keeps quiet
        with self._lock:
            if self._state.token is not token:
                return False
            self._next_run = next_run
            return True

    def _release(self, token: CancelToken) -> None:
        with self._lock:
            if self._state.token is token:
                self._state = ScheduleState.idle()

    async def _run(self, token: CancelToken, next_run: datetime) -> None:
        try:
            while True:
                delay = (next_run - self._clock()).total_seconds()
                if await token.sleep(delay):
                    self._log.debug('wait cancelled')
                    return

                async with self._exec_lock:
                    # A stop that raced the end of the wait wins
                    if not self._transition(token, ScheduleStatus.EXECUTING):
                        return
                    following = await self._tick(token)

                if following is None:
                    self._log.info('one-shot rule done')
                    return
                if not self._transition(token, ScheduleStatus.ARMED):
                    return
                next_run = following
        except Exception as e:
            self._log.error(f'tick loop crashed: {e}', exc_info=True)
            raise
        finally:
            self._release(token)

    async def _tick(self, token: CancelToken) -> Optional[datetime]:
        """Run the job once and compute the following next_run."""
        start_time = self._clock()
        self._job_started.notify(JobStartedEvent(self.name, start_time))

        exception = await self._invoke_job()

        end_time = self._clock()
        next_run: Optional[datetime] = None
        if not self._calculator.one_shot:
            next_run = self._calculator.calculate(end_time)
        # A stop during the job means this next_run will never happen
        current = self._publish_next_run(token, next_run)

        self._log.debug(
            f'ran in {(end_time - start_time).total_seconds():.3f}s, next_run={next_run}'
        )
        self._job_ended.notify(
            JobEndedEvent(
                self.name, exception, start_time, end_time, next_run if current else None
            )
        )
        return next_run

    async def _invoke_job(self) -> Optional[BaseException]:
        try:
            if inspect.iscoroutinefunction(self._job):
                await self._job()
            else:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, self._call_job)
        except Exception as e:
            self._log.error(f'job failed: {e}', exc_info=True)
            return e
        return None

    def _call_job(self) -> None:
        self._job_thread = threading.get_ident()
        try:
            self._job()
        finally:
            self._job_thread = None
