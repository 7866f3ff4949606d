"""Pytest configuration and shared fixtures for remoteflow tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from remoteflow.runtime import clear_log_hooks, init

if TYPE_CHECKING:
    from collections.abc import Generator

# Generous bounds: tests assert on outcomes, not on timing.
REQUEST_TIMEOUT = 1.0
GATHER_TIMEOUT = 2.0


@pytest.fixture(autouse=True)
def setup_runtime() -> Generator[None]:
    """Initialize configuration before each test and drop log hooks after."""
    init(request_timeout=REQUEST_TIMEOUT, gather_timeout=GATHER_TIMEOUT, concurrency=4)
    yield
    clear_log_hooks()


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return 'asyncio'


@pytest.fixture
def log_events() -> list[dict[str, Any]]:
    """Capture structured log events emitted during the test."""
    from remoteflow.runtime import add_log_hook, configure_logging

    events: list[dict[str, Any]] = []
    configure_logging(level='DEBUG', json_output=True)
    add_log_hook(events.append)
    return events
