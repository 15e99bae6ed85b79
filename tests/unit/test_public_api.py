"""The package root exposes the scheduling API and installs the error hook."""

from __future__ import annotations

import sys

import pytest

import cadence
from cadence.core.errors import _cadence_excepthook

pytestmark = pytest.mark.unit


def test_all_names_resolve() -> None:
    for name in cadence.__all__:
        assert hasattr(cadence, name), name


def test_error_hook_installed_on_import() -> None:
    assert sys.excepthook is _cadence_excepthook


def test_runner_from_package_root() -> None:
    runner = cadence.ScheduleRunner(lambda: None, lambda run: run.every(10).seconds())

    assert runner.status is cadence.ScheduleStatus.IDLE
    assert isinstance(runner.rule, cadence.IntervalSchedule)
    assert runner.next_run is None
