"""Shared fixtures for runner tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from cadence.core.utils.loop_runner import LoopRunner


@pytest.fixture
def loop_runner() -> Iterator[LoopRunner]:
    """A private event-loop thread, torn down after the test."""
    runner = LoopRunner(name='cadence-test-loop')
    runner.start()
    yield runner
    runner.stop()
