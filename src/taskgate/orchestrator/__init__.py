"""Orchestrator subsystem for Taskgate.

This module implements concurrency-bounded task admission and the live
status toast that reports running and queued tasks.
"""

from __future__ import annotations

from taskgate.orchestrator.concurrency import (
    AdmissionGate,
    CapacityLimit,
    ConcurrencyManager,
    OccupancyReporter,
    resolve_concurrency_limit,
)
from taskgate.orchestrator.models import (
    SlotState,
    TaskRecord,
    ToastBody,
    ToastVariant,
)
from taskgate.orchestrator.toast import (
    NotificationSink,
    TaskToastManager,
    format_duration,
)

__all__ = [
    # Concurrency
    "AdmissionGate",
    "CapacityLimit",
    "ConcurrencyManager",
    "OccupancyReporter",
    "resolve_concurrency_limit",
    # Models
    "SlotState",
    "TaskRecord",
    "ToastBody",
    "ToastVariant",
    # Toasts
    "NotificationSink",
    "TaskToastManager",
    "format_duration",
]
