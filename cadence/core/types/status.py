# core/types/status.py
"""
Core enums used throughout the library.
This module should not import from other library modules.
"""

from enum import Enum


class ScheduleStatus(Enum):
    """Lifecycle status of a single schedule"""

    IDLE = 'idle'  # Never started, stopped, or a one-shot that already fired.

    ARMED = 'armed'  # Waiting for next_run. Stop cuts the wait short.

    EXECUTING = 'executing'  # Job body running. Not interruptible.

    @property
    def is_running(self) -> bool:
        """Whether the schedule holds an active cancellation token."""
        return self is not ScheduleStatus.IDLE
