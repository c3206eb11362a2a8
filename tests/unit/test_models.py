"""Unit tests for orchestrator records and toast payloads."""

from __future__ import annotations

from datetime import timezone

import pytest

from taskgate.orchestrator.models import TaskRecord, ToastBody, ToastVariant


class TestTaskRecord:
    """Tests for lenient TaskRecord validation."""

    def test_defaults(self) -> None:
        record = TaskRecord(id="bg_1")
        assert record.description == ""
        assert record.agent is None
        assert record.is_background is True
        assert record.skills == []
        assert record.started_at.tzinfo == timezone.utc

    def test_camel_case_background_flag(self) -> None:
        record = TaskRecord.model_validate({"id": "t1", "isBackground": False})
        assert record.is_background is False

    def test_unknown_keys_ignored(self) -> None:
        record = TaskRecord.model_validate({"id": "t1", "parentSessionID": "ses_1"})
        assert record.id == "t1"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, []),
            ("playwright", ["playwright"]),
            ("", []),
            (42, []),
            (["git-master", "", None, "playwright"], ["git-master", "playwright"]),
            (("a", "b"), ["a", "b"]),
        ],
    )
    def test_skills_coercion(self, raw: object, expected: list[str]) -> None:
        assert TaskRecord(id="t1", skills=raw).skills == expected

    def test_none_description_becomes_empty(self) -> None:
        assert TaskRecord(id="t1", description=None).description == ""

    def test_non_string_description_stringified(self) -> None:
        assert TaskRecord.model_validate({"id": "c", "description": 42}).description == "42"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, True),
            (True, True),
            (False, False),
            (0, False),
            (1, True),
            ("false", False),
            ("yes", True),
        ],
    )
    def test_background_flag_coercion(self, raw: object, expected: bool) -> None:
        record = TaskRecord.model_validate({"id": "d", "isBackground": raw})
        assert record.is_background is expected

    def test_non_string_agent_stringified(self) -> None:
        assert TaskRecord(id="t1", agent=7).agent == "7"

    @pytest.mark.parametrize("agent", [None, "", "   "])
    def test_display_agent_falls_back_to_id(self, agent: str | None) -> None:
        assert TaskRecord(id="bg_3", agent=agent).display_agent == "bg_3"

    def test_display_agent_uses_agent(self) -> None:
        assert TaskRecord(id="bg_3", agent="oracle").display_agent == "oracle"


class TestToastBody:
    """Tests for the sink payload shape."""

    def test_payload_shape(self) -> None:
        body = ToastBody(
            title="Task Completed",
            message="done",
            variant=ToastVariant.SUCCESS,
            duration=5000,
        )

        assert body.to_payload() == {
            "body": {
                "title": "Task Completed",
                "message": "done",
                "variant": "success",
                "duration": 5000,
            }
        }

    def test_defaults(self) -> None:
        payload = ToastBody(title="t", message="m").to_payload()["body"]
        assert payload["variant"] == "info"
        assert payload["duration"] == 3000
