"""Configuration management for Taskgate.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Values passed to the TaskgateConfig constructor, including TOML values
   forwarded by load_config
2. Environment variables (TASKGATE_* prefix)
3. Default values defined in this module

Example TOML configuration:
    [background_task]
    default_concurrency = 3

    [background_task.model_concurrency]
    "anthropic/claude-opus" = 1

Example environment variable override:
    TASKGATE_BACKGROUND_TASK__DEFAULT_CONCURRENCY=8
    TASKGATE_LOGGING__FORMAT=console
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKGATE_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class BackgroundTaskConfig(BaseSettings):
    """Concurrency limits for background tasks.

    Limits are looked up most specific first: an exact model entry, then the
    provider part of the model name (text before ``/``), then the default.

    Attributes:
        default_concurrency: Slots available when no override matches
        provider_concurrency: Per-provider slot overrides
        model_concurrency: Per-model slot overrides
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKGATE_BACKGROUND_TASK__",
        extra="forbid",
    )

    default_concurrency: int = Field(default=5, ge=1, le=100)
    provider_concurrency: dict[str, int] = Field(default_factory=dict)
    model_concurrency: dict[str, int] = Field(default_factory=dict)

    @field_validator("provider_concurrency", "model_concurrency")
    @classmethod
    def validate_overrides(cls, v: dict[str, int]) -> dict[str, int]:
        """Validate every override grants at least one slot."""
        for key, limit in v.items():
            if limit < 1:
                raise ValueError(f"Concurrency for {key!r} must be >= 1, got {limit}")
        return v


class ToastConfig(BaseSettings):
    """Status toast presentation settings.

    Attributes:
        duration_ms: How long task list toasts stay visible
        completion_duration_ms: How long completion toasts stay visible
        show_skills: Render the Skills annotation under each task
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKGATE_TOAST__",
        extra="forbid",
    )

    duration_ms: int = Field(default=3000, ge=500, le=60000)
    completion_duration_ms: int = Field(default=5000, ge=500, le=60000)
    show_skills: bool = Field(default=True)


class SessionConfig(BaseSettings):
    """Session identity and planner write policy settings.

    Attributes:
        message_storage: Directory holding one sub-directory of message
            records per session
        planner_agents: Agent names restricted to markdown-only writes
        workspace_dir: Directory name planner agents may write into
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKGATE_SESSION__",
        extra="forbid",
    )

    message_storage: Path = Field(
        default_factory=lambda: Path.home() / ".local" / "share" / "taskgate" / "message"
    )
    planner_agents: list[str] = Field(default_factory=lambda: ["Prometheus (Planner)"])
    workspace_dir: str = Field(default=".chief")


class TaskgateConfig(BaseSettings):
    """Root configuration for Taskgate.

    Aggregates all subsystem configurations. Configuration can be loaded from:
    1. TOML files (using load_config function)
    2. Environment variables (TASKGATE_* prefix)
    3. Direct instantiation with keyword arguments

    Environment variable format for nested config:
        TASKGATE_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKGATE_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    background_task: BackgroundTaskConfig = Field(default_factory=BackgroundTaskConfig)
    toast: ToastConfig = Field(default_factory=ToastConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def load_config(config_path: Path | None = None) -> TaskgateConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./taskgate.toml (current directory)
    3. ~/.config/taskgate/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        TaskgateConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "taskgate.toml",
            Path.home() / ".config" / "taskgate" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Environment variables fill keys the TOML file leaves unset
    try:
        return TaskgateConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
