"""Concurrency-bounded task admission.

This module gates how many background tasks may run at once. A task asking
to run is either admitted into a free slot immediately or appended to a FIFO
wait queue; admission never blocks the caller. When a running task finishes
(success, failure or cancellation alike) its slot is released and the head
of the queue is promoted in the same critical section, so a slot is never
left idle while tasks wait.

Key Components:
- CapacityLimit: minimal capability, exposes only the configured limit
- OccupancyReporter: optional capability exposing live running/queued counts
- AdmissionGate: optional capability making admit/release decisions
- ConcurrencyManager: the in-process implementation of all three
- resolve_concurrency_limit: picks a limit from BackgroundTaskConfig
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Protocol

import structlog

from taskgate.config import BackgroundTaskConfig
from taskgate.orchestrator.models import SlotState

logger = structlog.get_logger(__name__)


class CapacityLimit(Protocol):
    """Anything that can report a concurrency limit."""

    def get_concurrency_limit(self) -> int: ...


class OccupancyReporter(Protocol):
    """Optional extension reporting live slot occupancy."""

    def get_running_count(self) -> int: ...

    def get_queued_count(self) -> int: ...


class AdmissionGate(Protocol):
    """Optional extension that owns admission and release decisions."""

    def admit(self, task_id: str) -> SlotState: ...

    def release(self, task_id: str) -> str | None: ...

    def state_of(self, task_id: str) -> SlotState: ...


def resolve_concurrency_limit(
    config: BackgroundTaskConfig,
    model: str | None = None,
) -> int:
    """Pick the concurrency limit that applies to a model.

    Lookup order: exact ``model_concurrency`` entry, then the provider part of
    ``model`` (text before the first ``/``) in ``provider_concurrency``, then
    ``default_concurrency``.

    Args:
        config: Background task configuration.
        model: Model identifier such as ``"anthropic/claude-sonnet"``.

    Returns:
        Number of slots available to tasks using that model.
    """
    if model:
        if model in config.model_concurrency:
            return config.model_concurrency[model]
        provider = model.split("/", 1)[0]
        if provider in config.provider_concurrency:
            return config.provider_concurrency[provider]
    return config.default_concurrency


class ConcurrencyManager:
    """Slot accounting with a FIFO wait queue.

    Mutations are serialized with a lock so that a release and the promotion
    of the next queued task can never interleave with another admission.

    Args:
        limit: Maximum number of tasks allowed to run concurrently.

    Raises:
        ValueError: If limit is smaller than 1.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Concurrency limit must be >= 1, got {limit}")

        self._limit = limit
        self._running: set[str] = set()
        self._queue: deque[str] = deque()
        self._lock = threading.Lock()
        self._logger = logger.bind(component="ConcurrencyManager")

        self._logger.info("concurrency_manager_initialized", limit=limit)

    @classmethod
    def from_config(
        cls,
        config: BackgroundTaskConfig,
        model: str | None = None,
    ) -> ConcurrencyManager:
        """Build a manager whose limit is resolved from configuration.

        Args:
            config: Background task configuration.
            model: Optional model identifier for per-model/provider limits.

        Returns:
            A new ConcurrencyManager.
        """
        return cls(resolve_concurrency_limit(config, model))

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def get_concurrency_limit(self) -> int:
        """Return the configured capacity."""
        return self._limit

    def get_running_count(self) -> int:
        """Return the number of tasks holding a slot."""
        return len(self._running)

    def get_queued_count(self) -> int:
        """Return the number of tasks waiting for a slot."""
        return len(self._queue)

    def state_of(self, task_id: str) -> SlotState:
        """Report whether a task is running, queued or untracked."""
        with self._lock:
            return self._state_locked(task_id)

    def running_ids(self) -> list[str]:
        """Snapshot of running task ids (unordered)."""
        with self._lock:
            return list(self._running)

    def queued_ids(self) -> list[str]:
        """Snapshot of queued task ids, head first."""
        with self._lock:
            return list(self._queue)

    # ------------------------------------------------------------------
    # Admission and release
    # ------------------------------------------------------------------

    def admit(self, task_id: str) -> SlotState:
        """Admit a task into a free slot or enqueue it.

        A task that is already running or queued keeps its current state and
        queue position.

        Args:
            task_id: Identifier of the task asking to run.

        Returns:
            SlotState.RUNNING if admitted, SlotState.QUEUED otherwise.
        """
        with self._lock:
            current = self._state_locked(task_id)
            if current is not SlotState.UNTRACKED:
                self._logger.debug(
                    "admission_already_tracked",
                    task_id=task_id,
                    state=current.value,
                )
                return current

            if len(self._running) < self._limit:
                self._running.add(task_id)
                self._logger.info(
                    "task_admitted",
                    task_id=task_id,
                    running=len(self._running),
                    limit=self._limit,
                )
                return SlotState.RUNNING

            self._queue.append(task_id)
            self._logger.info(
                "task_queued",
                task_id=task_id,
                position=len(self._queue),
                running=len(self._running),
                limit=self._limit,
            )
            return SlotState.QUEUED

    def release(self, task_id: str) -> str | None:
        """Free the slot or queue entry held by a task.

        Releasing a running task promotes the head of the wait queue in the
        same critical section. Releasing a queued task only removes it from
        the queue. Unknown ids are ignored.

        Args:
            task_id: Identifier of the finished or cancelled task.

        Returns:
            Id of the task promoted into the freed slot, or None.
        """
        with self._lock:
            if task_id in self._running:
                self._running.discard(task_id)
                promoted: str | None = None
                if self._queue and len(self._running) < self._limit:
                    promoted = self._queue.popleft()
                    self._running.add(promoted)

                self._logger.info(
                    "slot_released",
                    task_id=task_id,
                    promoted=promoted,
                    running=len(self._running),
                    queued=len(self._queue),
                )
                return promoted

            if task_id in self._queue:
                self._queue.remove(task_id)
                self._logger.info(
                    "queued_task_cancelled",
                    task_id=task_id,
                    queued=len(self._queue),
                )
                return None

            self._logger.debug("release_unknown_task", task_id=task_id)
            return None

    def reset(self) -> None:
        """Drop all running and queued bookkeeping."""
        with self._lock:
            dropped_running = len(self._running)
            dropped_queued = len(self._queue)
            self._running.clear()
            self._queue.clear()

        self._logger.info(
            "concurrency_manager_reset",
            dropped_running=dropped_running,
            dropped_queued=dropped_queued,
        )

    def _state_locked(self, task_id: str) -> SlotState:
        if task_id in self._running:
            return SlotState.RUNNING
        if task_id in self._queue:
            return SlotState.QUEUED
        return SlotState.UNTRACKED
