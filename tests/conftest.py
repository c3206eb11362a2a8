"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Restore structlog defaults and bound context after each test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
