# cadence/core/models/config.py
from __future__ import annotations
import logging
import os
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self
from cadence.core.defaults import DEFAULT_TIMEZONE
from cadence.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)
from cadence.core.logging import set_default_level

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class SchedulerConfig(BaseModel):
    """
    Runtime settings shared by schedule runners.

    Fields:
        - timezone: Zone in which time-of-day rules are evaluated (default: UTC)
        - stop_timeout_seconds: Default timeout for stop_and_wait (None = wait forever)
        - log_level: Level applied to cadence loggers by apply_logging()
    """

    model_config = ConfigDict(frozen=True)

    timezone: str = Field(
        default=DEFAULT_TIMEZONE, description='Timezone for time-of-day rules'
    )
    stop_timeout_seconds: Optional[float] = Field(
        default=None, ge=0, description='Default stop_and_wait timeout (seconds)'
    )
    log_level: str = Field(default='INFO', description='cadence log level name')

    @model_validator(mode='after')
    def validate_settings(self) -> Self:
        """Validate timezone and log level.

        Collects all independent errors and raises them together.
        """
        report = ValidationReport('config')

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            report.add(
                ConfigurationError(
                    message=f"invalid timezone '{self.timezone}'",
                    code=ErrorCode.CONFIG_INVALID_TIMEZONE,
                    notes=[f'zoneinfo error: {e}'],
                    help_text='use an IANA name such as "UTC" or "Europe/Berlin"',
                )
            )

        if self.log_level.upper() not in _LOG_LEVELS:
            report.add(
                ConfigurationError(
                    message=f"invalid log level '{self.log_level}'",
                    code=ErrorCode.CONFIG_INVALID_LOG_LEVEL,
                    notes=[f'allowed: {", ".join(_LOG_LEVELS)}'],
                    help_text='set log_level to one of the standard logging level names',
                )
            )

        raise_collected(report)
        return self

    @property
    def level(self) -> int:
        """Numeric logging level."""
        return logging.getLevelName(self.log_level.upper())

    def apply_logging(self) -> None:
        """Use this config's log level for loggers created from now on."""
        set_default_level(self.level)

    @classmethod
    def from_env(cls, prefix: str = 'CADENCE_') -> SchedulerConfig:
        """Build a config from environment variables.

        Reads ``<prefix>TIMEZONE``, ``<prefix>STOP_TIMEOUT_SECONDS`` and
        ``<prefix>LOG_LEVEL``; unset variables keep their defaults.
        """
        values: dict[str, object] = {}
        timezone = os.environ.get(f'{prefix}TIMEZONE')
        if timezone:
            values['timezone'] = timezone
        stop_timeout = os.environ.get(f'{prefix}STOP_TIMEOUT_SECONDS')
        if stop_timeout:
            values['stop_timeout_seconds'] = stop_timeout
        log_level = os.environ.get(f'{prefix}LOG_LEVEL')
        if log_level:
            values['log_level'] = log_level
        return cls.model_validate(values)
