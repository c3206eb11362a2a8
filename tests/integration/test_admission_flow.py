"""Integration tests for the task admission and status toast flow.

Drives a TaskToastManager backed by a ConcurrencyManager built from a TOML
configuration file, with an asynchronous sink standing in for the host UI.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any

import pytest

from taskgate.config import load_config
from taskgate.orchestrator import ConcurrencyManager, TaskRecord, TaskToastManager
from taskgate.session import PlannerWritePolicy, SessionAgentStore, WritePolicyViolation
from taskgate.skills import SkillCatalog


@pytest.mark.asyncio
async def test_provider_limit_governs_admission(
    config_file: Path, recording_sink: Any
) -> None:
    """Tasks beyond the provider limit queue and are promoted in order."""
    config = load_config(config_file)
    controller = ConcurrencyManager.from_config(
        config.background_task, model="anthropic/claude-sonnet"
    )
    manager = TaskToastManager(recording_sink, controller, config.toast)

    for n in range(1, 5):
        manager.add_task(
            TaskRecord(id=f"bg_{n}", description=f"Task {n}", agent="explore")
        )
    await manager.drain()

    assert controller.get_concurrency_limit() == 2
    assert recording_sink.titles == [
        "New Background Task",
        "New Background Task",
        "Task Queued",
        "Task Queued",
    ]
    assert "2/2 slots, 2 waiting" in recording_sink.last_message
    assert "Queued (2):" in recording_sink.last_message
    assert all(p["body"]["duration"] == 2000 for p in recording_sink.payloads)

    manager.remove_task("bg_1")
    await manager.drain()

    assert [t.id for t in manager.running_tasks()] == ["bg_2", "bg_3"]
    assert [t.id for t in manager.queued_tasks()] == ["bg_4"]
    assert "2/2 slots, 1 waiting" in recording_sink.last_message

    manager.show_completion_toast("bg_2", duration="12s")
    await manager.drain()

    completion = recording_sink.payloads[-1]["body"]
    assert completion["variant"] == "success"
    assert completion["duration"] == 4000
    assert completion["message"].startswith('"Task 2" finished in 12s')
    assert "bg_4" in controller.running_ids()
    assert controller.get_queued_count() == 0


@pytest.mark.asyncio
async def test_one_toast_per_mutation_under_churn(recording_sink: Any) -> None:
    """A random add/remove sequence yields one toast per call and never overfills."""
    controller = ConcurrencyManager(limit=3)
    manager = TaskToastManager(recording_sink, controller)
    rng = random.Random(7)
    live: list[str] = []
    mutations = 0

    for step in range(60):
        if live and rng.random() < 0.4:
            task_id = live.pop(rng.randrange(len(live)))
            manager.remove_task(task_id)
        else:
            task_id = f"bg_{step}"
            manager.add_task({"id": task_id, "description": f"step {step}"})
            live.append(task_id)
        mutations += 1
        assert controller.get_running_count() <= 3
        assert len(manager) == len(live)

    await manager.drain()
    assert len(recording_sink.payloads) == mutations

    manager.close()
    assert controller.get_running_count() == 0
    assert controller.get_queued_count() == 0


@pytest.mark.asyncio
async def test_skills_shown_for_catalogued_tasks(recording_sink: Any) -> None:
    """Skill names resolved through the catalog appear under the task."""
    catalog = SkillCatalog()
    requested = ["playwright", "git-master", "unknown-skill"]
    resolution = catalog.resolve_many(requested)

    manager = TaskToastManager(recording_sink, ConcurrencyManager(limit=5))
    manager.add_task(
        TaskRecord(
            id="bg_ui",
            description="Verify login page",
            agent="frontend",
            skills=list(resolution.resolved),
        )
    )
    await manager.drain()

    assert resolution.not_found == ["unknown-skill"]
    assert "Skills: playwright, git-master" in recording_sink.last_message
    assert "1/5 slots" in recording_sink.last_message


def test_planner_policy_from_config(config_file: Path, tmp_path: Path) -> None:
    """Planner names and workspace directory come from configuration."""
    config = load_config(config_file)
    store = SessionAgentStore()
    store.record("ses_1", "Metis")
    policy = PlannerWritePolicy(store, config.session)

    policy.before_tool("Write", "ses_1", {"filePath": str(tmp_path / ".plans" / "a.md")})

    with pytest.raises(WritePolicyViolation, match=r"inside \.plans/"):
        policy.before_tool(
            "Write", "ses_1", {"filePath": str(tmp_path / ".chief" / "a.md")}
        )
