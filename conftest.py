"""Global test configuration and shared fixtures."""

from __future__ import annotations

import logging

import pytest

from cap_mox import Mock
from cap_mox.unittests._capabilities import Calculator
from tests.helpers.scenario import ScenarioOutcome


@pytest.fixture(autouse=True)
def _cap_mox_debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    """Capture the library's debug records so failures show the call trail."""
    caplog.set_level(logging.DEBUG, logger="cap_mox")


@pytest.fixture
def calculator() -> Mock[Calculator]:
    """Return a fresh loose mock of :class:`Calculator`."""
    return Mock(Calculator)


@pytest.fixture
def outcome() -> ScenarioOutcome:
    """Collect results and errors produced by scenario steps."""
    return ScenarioOutcome()
