"""Coloured, schedule-aware logging for cadence components.

Every component logs through ``get_logger('<component>')``. Code acting on
behalf of one schedule wraps that logger with ``schedule_logger`` so each
record carries a ``schedule_name`` attribute, rendered as its own column.
"""

import logging
import sys
from datetime import datetime
from typing import Any, MutableMapping, Optional

_ROOT_NAME = 'cadence'

# Level for loggers created from now on; set_default_level also updates existing ones
_default_level: int = logging.INFO


class ColoredFormatter(logging.Formatter):
    """Tabular formatter: time, component, level, schedule, message."""

    COLORS = {
        'RESET': '\033[0m',
        'LIGHT_BLUE': '\033[94m',
        'CYAN': '\033[96m',
        'WHITE': '\033[97m',
        'GRAY': '\033[90m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'RED': '\033[91m',
        'BRIGHT_RED': '\033[1;91m',
    }

    LEVEL_COLORS = {
        'DEBUG': 'GRAY',
        'INFO': 'GREEN',
        'WARNING': 'YELLOW',
        'ERROR': 'RED',
        'CRITICAL': 'BRIGHT_RED',
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _paint(self, color: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f'{self.COLORS[color]}{text}{self.COLORS["RESET"]}'

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        # 'cadence.runner' -> 'runner'
        component = record.name.rsplit('.', 1)[-1]
        # [loop_runner] is the widest component
        component_col = f'[{component}]'.ljust(14)
        level_col = f'[{record.levelname}]'.ljust(10)

        level_color = self.LEVEL_COLORS.get(record.levelname, 'WHITE')

        schedule_name: Optional[str] = getattr(record, 'schedule_name', None)
        schedule_col = (
            self._paint('CYAN', f'<{schedule_name}>') + ' ' if schedule_name else ''
        )

        formatted = (
            self._paint('LIGHT_BLUE', f'[{time_str}]')
            + ' '
            + self._paint('WHITE', component_col)
            + self._paint(level_color, level_col)
            + schedule_col
            + self._paint('WHITE', record.getMessage())
        )

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


class ScheduleLogger(logging.LoggerAdapter):
    """Logger bound to one schedule; adds ``schedule_name`` to every record."""

    def __init__(self, logger: logging.Logger, schedule_name: str) -> None:
        super().__init__(logger, {'schedule_name': schedule_name})

    @property
    def schedule_name(self) -> str:
        assert self.extra is not None
        return str(self.extra['schedule_name'])

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        # Keep caller-supplied extra fields next to the schedule name
        kwargs['extra'] = {**(self.extra or {}), **kwargs.get('extra', {})}
        return msg, kwargs


def _cadence_loggers() -> list[logging.Logger]:
    return [
        logger
        for name, logger in logging.Logger.manager.loggerDict.items()
        if name.startswith(f'{_ROOT_NAME}.') and isinstance(logger, logging.Logger)
    ]


def set_default_level(level: int) -> None:
    """Set the level of every cadence logger, existing and future."""
    global _default_level
    _default_level = level
    for logger in _cadence_loggers():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def get_logger(component_name: str) -> logging.Logger:
    """Get the logger of a cadence component (``cadence.<component_name>``)."""
    logger = logging.getLogger(f'{_ROOT_NAME}.{component_name}')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # Prevent duplicate logs from parent loggers
        logger.propagate = False

    return logger


def schedule_logger(component_name: str, schedule_name: str) -> ScheduleLogger:
    """Component logger whose records are tagged with ``schedule_name``."""
    return ScheduleLogger(get_logger(component_name), schedule_name)
