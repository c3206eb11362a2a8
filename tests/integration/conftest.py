"""Pytest fixtures for integration tests.

Provides a recording notification sink that behaves like an asynchronous
host UI, and a configuration file with per-provider limits.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest


class RecordingSink:
    """Async sink that stores every payload it is asked to display."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.payloads: list[dict[str, Any]] = []

    async def show_toast(self, payload: dict[str, Any]) -> bool:
        await asyncio.sleep(self.delay)
        self.payloads.append(payload)
        return True

    @property
    def titles(self) -> list[str]:
        return [p["body"]["title"] for p in self.payloads]

    @property
    def last_message(self) -> str:
        return self.payloads[-1]["body"]["message"]


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a taskgate.toml with a default limit and a provider override."""
    path = tmp_path / "taskgate.toml"
    path.write_text(
        """
[background_task]
default_concurrency = 3

[background_task.provider_concurrency]
anthropic = 2

[toast]
duration_ms = 2000
completion_duration_ms = 4000

[session]
workspace_dir = ".plans"
planner_agents = ["Prometheus (Planner)", "Metis"]
""",
        encoding="utf-8",
    )
    return path
