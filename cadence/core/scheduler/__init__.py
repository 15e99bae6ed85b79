"""
Scheduler module for running jobs on recurrence rules.

Main components:
- ScheduleRunner: Start/stop state machine and self-rescheduling tick loop
- RecurrenceCalculator: Next run time calculation for one installed rule
- RunSpecifier: Fluent builder that installs a rule

Example usage:
    from cadence.core.scheduler import ScheduleRunner

    runner = ScheduleRunner(job, lambda run: run.every(5).minutes())
    runner.start()
"""

from cadence.core.scheduler.calculator import RecurrenceCalculator, calculate_next_run
from cadence.core.scheduler.events import JobEndedEvent, JobStartedEvent
from cadence.core.scheduler.runner import ScheduleRunner
from cadence.core.scheduler.specifier import RunSpecifier

__all__ = [
    'ScheduleRunner',
    'RecurrenceCalculator',
    'RunSpecifier',
    'JobStartedEvent',
    'JobEndedEvent',
    'calculate_next_run',
]
