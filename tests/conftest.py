"""Shared pytest fixtures and configuration."""

from collections.abc import Generator

import pytest
import structlog

from logme.observability.context import correlation_id_var
from logme.observability.events import LogEvent


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Generator[None, None, None]:
    """Keep structlog configuration and the correlation context per-test."""
    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def events() -> list[LogEvent]:
    """A list used as an event sink via ``events.append``."""
    return []
