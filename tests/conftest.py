"""Shared fixtures for the llxt test suite."""

from collections.abc import Generator

import pytest
import structlog

from llxt.fetch.metrics import FetchMetrics
from tests.helpers.clock import FakeClock


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None]:
    """Start every test with fresh metrics and default structlog config."""
    FetchMetrics.reset()
    structlog.reset_defaults()
    yield
    FetchMetrics.reset()
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake monotonic clock."""
    return FakeClock()
