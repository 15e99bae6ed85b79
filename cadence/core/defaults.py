"""Shared default constants for the cadence library."""

# Name of the daemon thread hosting the shared event loop.
LOOP_THREAD_NAME: str = 'cadence-loop'

# Seconds LoopRunner.stop() waits for the loop thread to exit.
LOOP_STOP_JOIN_SECONDS: float = 2.0

# Default timezone for time-of-day rules.
DEFAULT_TIMEZONE: str = 'UTC'
