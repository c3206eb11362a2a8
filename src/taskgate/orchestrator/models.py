"""Task records, slot states and toast payloads shared by the orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SlotState(str, Enum):
    """Where a task sits relative to the concurrency limit.

    Values:
        RUNNING: Task holds a slot and is executing.
        QUEUED: Task is waiting in arrival order for a free slot.
        UNTRACKED: Task is unknown to the admission controller.
    """

    RUNNING = "running"
    QUEUED = "queued"
    UNTRACKED = "untracked"


class ToastVariant(str, Enum):
    """Visual style of a toast notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TaskRecord(BaseModel):
    """One submitted unit of background work.

    Accepts both snake_case and the camelCase ``isBackground`` key so
    records built by a host plugin can be passed through unchanged.

    Attributes:
        id: Caller-supplied identifier, stable for the task's lifetime.
        description: Human-readable summary, display only.
        agent: Name of the agent that owns the task, if known.
        is_background: Whether the task runs outside the foreground.
            Foreground tasks are displayed but never admission-controlled.
        skills: Ordered skill identifiers attached to the task.
        started_at: UTC timestamp when the record was created.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    description: str = ""
    agent: str | None = None
    is_background: bool = Field(default=True, alias="isBackground")
    skills: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> Any:
        """Treat a missing or malformed skills value as an empty list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        if not isinstance(v, (list, tuple, set, frozenset)):
            return []
        return [str(skill) for skill in v if skill]

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("is_background", mode="before")
    @classmethod
    def coerce_is_background(cls, v: Any) -> Any:
        """Treat a missing flag as background and anything else by truthiness."""
        if v is None:
            return True
        if isinstance(v, str):
            return v.strip().lower() not in {"", "0", "false", "no", "off"}
        return bool(v)

    @field_validator("agent", mode="before")
    @classmethod
    def coerce_agent(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def display_agent(self) -> str:
        """Agent name for display, falling back to the task id."""
        if self.agent and self.agent.strip():
            return self.agent
        return self.id


class ToastBody(BaseModel):
    """Content of a single toast notification.

    Attributes:
        title: Short heading shown above the message.
        message: Multi-line body text.
        variant: Visual style.
        duration: Display time in milliseconds.
    """

    title: str
    message: str
    variant: ToastVariant = ToastVariant.INFO
    duration: int = 3000

    def to_payload(self) -> dict[str, Any]:
        """Convert to the ``{"body": {...}}`` structure the sink accepts."""
        return {
            "body": {
                "title": self.title,
                "message": self.message,
                "variant": self.variant.value,
                "duration": self.duration,
            }
        }
