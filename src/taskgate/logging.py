"""Structured logging configuration for Taskgate.

This module configures structlog with support for:
- JSON and console output formats
- Size-based rotation when logging to a file
- Correlation IDs tying a task's admission, promotion and removal together
- Task, session and agent context binding

structlog builds the event dictionaries; Python's stdlib logging owns the
handler (stdout or a rotating file) and level filtering.

Example usage:
    >>> from taskgate.config import LoggingConfig
    >>> from taskgate.logging import setup_logging, get_logger, bind_task_context
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="console"))
    >>> logger = get_logger(__name__)
    >>> bind_task_context(task_id="bg_1a2b3c4d", session_id="ses_42")
    >>> logger.info("task_admitted", running=2, limit=5)
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any

import structlog

from taskgate.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "taskgate_correlation_id", default=None
)

_TASK_CONTEXT_KEYS = ("task_id", "session_id", "agent")


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor copying the active correlation ID into the event.

    Events logged outside any correlated flow are left untouched.
    """
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    """Mark the current context as part of a correlated flow.

    Args:
        correlation_id: Identifier shared by related events, or None to end
            the flow.
    """
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def bind_task_context(
    task_id: str,
    session_id: str | None = None,
    agent: str | None = None,
) -> None:
    """Bind task, session and agent identifiers to all subsequent logs.

    Identifiers left as None are not bound.

    Args:
        task_id: Task the following events concern
        session_id: Session the task belongs to
        agent: Agent that owns the task
    """
    values = dict(zip(_TASK_CONTEXT_KEYS, (task_id, session_id, agent)))
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )


def clear_task_context() -> None:
    """Remove task, session and agent identifiers from the log context."""
    structlog.contextvars.unbind_contextvars(*_TASK_CONTEXT_KEYS)


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)

    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def _build_renderer(config: LoggingConfig) -> Any:
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    """Render structlog events on the handler.

    The stdlib record's own exc_info is dropped, so a traceback only ever
    appears inside the rendered event.
    """
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _build_renderer(config),
        ],
        keep_exc_info=False,
        keep_stack_info=False,
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog and the root stdlib logger.

    Replaces any handlers already on the root logger with a single stdout
    or rotating-file handler, then installs the processor chain: level,
    logger name, ISO timestamp, bound context, correlation ID and exception
    formatting. Rendering to JSON or console text happens in the handler's
    ProcessorFormatter.

    Args:
        config: Logging section of TaskgateConfig
    """
    level = getattr(logging, config.level)

    handler = _build_handler(config)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(config))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
