"""cadence - run jobs on declarative recurrence rules, in process"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.errors import (
    CadenceError,
    ConfigurationError,
    ErrorCode,
    MultipleValidationErrors,
    RegistryError,
    ScheduleStateError,
)
from .core.logging import get_logger, set_default_level
from .core.models.config import SchedulerConfig
from .core.models.schedule import (
    IntervalUnit,
    NowSchedule,
    DelaySchedule,
    TimeOfDaySchedule,
    InstantSchedule,
    IntervalSchedule,
    DailySchedule,
    RecurrenceRule,
)
from .core.registry.schedules import (
    ScheduleRegistry,
    NotRegistered,
    DuplicateScheduleNameError,
)
from .core.scheduler import (
    ScheduleRunner,
    RecurrenceCalculator,
    RunSpecifier,
    JobStartedEvent,
    JobEndedEvent,
    calculate_next_run,
)
from .core.types.status import ScheduleStatus
from .core.utils.loop_runner import LoopRunner, LoopRunnerError

__all__ = [
    # Runner
    'ScheduleRunner',
    'ScheduleStatus',
    'JobStartedEvent',
    'JobEndedEvent',
    'LoopRunner',
    'LoopRunnerError',
    # Rules
    'RecurrenceCalculator',
    'RunSpecifier',
    'calculate_next_run',
    'IntervalUnit',
    'NowSchedule',
    'DelaySchedule',
    'TimeOfDaySchedule',
    'InstantSchedule',
    'IntervalSchedule',
    'DailySchedule',
    'RecurrenceRule',
    # Registry
    'ScheduleRegistry',
    'NotRegistered',
    'DuplicateScheduleNameError',
    # Config
    'SchedulerConfig',
    'get_logger',
    'set_default_level',
    # Errors
    'CadenceError',
    'ConfigurationError',
    'ScheduleStateError',
    'RegistryError',
    'MultipleValidationErrors',
    'ErrorCode',
]
