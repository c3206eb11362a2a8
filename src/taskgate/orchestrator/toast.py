"""Live task status toasts.

The TaskToastManager keeps the ordered set of tasks known to a session and,
on every add or remove, renders one summary of what is running, what is
queued and how many slots are in use, then hands it to the notification
sink. Delivery is fire-and-forget: the mutation is complete before the sink
acknowledges anything, and a failed delivery is logged, never retried and
never rolled back.

The capacity controller is probed for optional capabilities rather than
assumed to implement them all. A controller that only reports its limit
still gets a useful toast (every task shown as running, capacity shown
without occupancy).
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from taskgate.config import ToastConfig
from taskgate.orchestrator.concurrency import (
    AdmissionGate,
    CapacityLimit,
    OccupancyReporter,
)
from taskgate.orchestrator.models import (
    SlotState,
    TaskRecord,
    ToastBody,
    ToastVariant,
)

logger = structlog.get_logger(__name__)

BULLET = "•"


class NotificationSink(Protocol):
    """External surface that displays a toast.

    ``show_toast`` receives ``{"body": {"title", "message", "variant",
    "duration"}}`` and may return an awaitable acknowledgement. Its delivery
    guarantees (best-effort, at most once) are its own.
    """

    def show_toast(self, payload: dict[str, Any]) -> Awaitable[Any] | None: ...


def format_duration(start: datetime, end: datetime | None = None) -> str:
    """Format elapsed time as ``1h 2m 3s``, ``2m 3s`` or ``3s``.

    Args:
        start: When the task started.
        end: When it finished. Defaults to now (UTC).

    Returns:
        Compact human-readable duration.
    """
    end = end or datetime.now(timezone.utc)
    seconds = max(0, int((end - start).total_seconds()))
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _supports(obj: object, *methods: str) -> bool:
    return all(callable(getattr(obj, name, None)) for name in methods)


class TaskToastManager:
    """Ordered task registry that re-renders a status toast on every change.

    One instance per session. Background tasks are forwarded to the
    controller for admission when it is an admission gate; foreground tasks
    are displayed but never occupy a slot. Toasts are handed to the sink
    while the registry lock is held, so the sink sees them in mutation order.

    Args:
        sink: Notification sink displaying the toast.
        concurrency: Capacity controller. Must report a limit; occupancy
            counts and admission are used when available.
        config: Toast presentation settings.
    """

    def __init__(
        self,
        sink: NotificationSink,
        concurrency: CapacityLimit,
        config: ToastConfig | None = None,
    ) -> None:
        self._sink = sink
        self._concurrency = concurrency
        self._config = config or ToastConfig()
        self._tasks: dict[str, TaskRecord] = {}
        self._lock = threading.RLock()
        self._pending: set[asyncio.Future[Any]] = set()
        self._logger = logger.bind(component="TaskToastManager")

        self._gate: AdmissionGate | None = (
            concurrency  # type: ignore[assignment]
            if _supports(concurrency, "admit", "release", "state_of")
            else None
        )
        self._occupancy: OccupancyReporter | None = (
            concurrency  # type: ignore[assignment]
            if _supports(concurrency, "get_running_count", "get_queued_count")
            else None
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get_task(self, task_id: str) -> TaskRecord | None:
        """Return the tracked record for a task id, if any."""
        return self._tasks.get(task_id)

    def running_tasks(self) -> list[TaskRecord]:
        """Tracked tasks currently running, in insertion order."""
        with self._lock:
            return [t for t in self._tasks.values() if not self._is_queued(t)]

    def queued_tasks(self) -> list[TaskRecord]:
        """Tracked tasks waiting for a slot, in insertion order."""
        with self._lock:
            return [t for t in self._tasks.values() if self._is_queued(t)]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_task(self, task: TaskRecord | Mapping[str, Any]) -> TaskRecord:
        """Track a task and send one status toast.

        Re-adding a tracked id replaces its record in place; the task keeps
        its position and its slot or queue entry. A background task re-added
        as a foreground task gives up its slot or queue entry.

        Args:
            task: Task record, or a mapping with the same fields.

        Returns:
            The tracked TaskRecord.
        """
        record = task if isinstance(task, TaskRecord) else TaskRecord.model_validate(task)

        with self._lock:
            previous = self._tasks.get(record.id)
            replaced = previous is not None
            self._tasks[record.id] = record

            if (
                previous is not None
                and previous.is_background
                and not record.is_background
                and self._gate is not None
            ):
                self._gate.release(record.id)

            state = SlotState.RUNNING
            if record.is_background and self._gate is not None:
                state = self._gate.admit(record.id)

            if state is SlotState.QUEUED:
                title = "Task Queued"
            elif record.is_background:
                title = "New Background Task"
            else:
                title = "New Task"

            body = ToastBody(
                title=title,
                message=self.build_message(),
                variant=ToastVariant.INFO,
                duration=self._config.duration_ms,
            )

            self._logger.info(
                "task_tracked",
                task_id=record.id,
                agent=record.agent,
                background=record.is_background,
                state=state.value,
                replaced=replaced,
                tracked=len(self._tasks),
            )
            self._dispatch(body)
        return record

    def remove_task(self, task_id: str) -> None:
        """Stop tracking a task and send one status toast.

        Removing an unknown id is a no-op apart from the refreshed toast.

        Args:
            task_id: Identifier of the finished or cancelled task.
        """
        with self._lock:
            promoted = self._forget(task_id)
            body = ToastBody(
                title="Task List Updated",
                message=self.build_message(),
                variant=ToastVariant.INFO,
                duration=self._config.duration_ms,
            )

            self._logger.info(
                "task_untracked",
                task_id=task_id,
                promoted=promoted,
                tracked=len(self._tasks),
            )
            self._dispatch(body)

    def show_completion_toast(
        self,
        task_id: str,
        description: str | None = None,
        duration: str | None = None,
    ) -> None:
        """Stop tracking a finished task and announce its completion.

        Sends a single success toast naming the task, how long it took and
        the remaining task list, instead of a plain list refresh.

        Args:
            task_id: Identifier of the finished task.
            description: Display text. Defaults to the tracked description.
            duration: Preformatted duration. Defaults to time since the
                tracked record was created.
        """
        with self._lock:
            record = self._tasks.get(task_id)
            if description is None:
                description = record.description if record else task_id
            if duration is None:
                duration = format_duration(record.started_at) if record else "0s"

            self._forget(task_id)
            remaining = self.build_message()
            body = ToastBody(
                title="Task Completed",
                message=f'"{description}" finished in {duration}\n\n{remaining}',
                variant=ToastVariant.SUCCESS,
                duration=self._config.completion_duration_ms,
            )

            self._logger.info("task_completed", task_id=task_id, duration=duration)
            self._dispatch(body)

    def close(self) -> None:
        """Release every tracked background task and clear the registry.

        Called when the owning session is torn down. No toast is sent.
        """
        with self._lock:
            task_ids = list(self._tasks)
            for task_id in task_ids:
                self._forget(task_id)

        self._logger.info("task_toast_manager_closed", released=len(task_ids))

    async def drain(self) -> None:
        """Wait for toasts that are still being delivered."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build_message(self) -> str:
        """Render the current task list.

        Layout: ``Running (<n>):`` header, one line per running task with an
        optional ``Skills:`` annotation, slot occupancy (or just the limit
        when occupancy is not reported), then queued tasks if any.

        Returns:
            Multi-line toast message.
        """
        with self._lock:
            running = [t for t in self._tasks.values() if not self._is_queued(t)]
            queued = [t for t in self._tasks.values() if self._is_queued(t)]

            lines = [f"Running ({len(running)}):"]
            for task in running:
                lines.extend(self._render_task(task))

            lines.append(self._render_capacity())

            if queued:
                lines.append(f"Queued ({len(queued)}):")
                for task in queued:
                    lines.extend(self._render_task(task))

            return "\n".join(lines)

    def _render_task(self, task: TaskRecord) -> list[str]:
        label = task.description or task.id
        line = f"{BULLET} {label} ({task.display_agent})"
        if not task.is_background:
            line += " [sync]"
        rendered = [line]
        if self._config.show_skills and task.skills:
            rendered.append(f"  Skills: {', '.join(task.skills)}")
        return rendered

    def _render_capacity(self) -> str:
        limit = self._concurrency.get_concurrency_limit()
        if self._occupancy is None:
            return f"Limit: {limit}"

        running = self._occupancy.get_running_count()
        queued = self._occupancy.get_queued_count()
        fragment = f"{running}/{limit} slots"
        if queued:
            fragment += f", {queued} waiting"
        return fragment

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_queued(self, task: TaskRecord) -> bool:
        if not task.is_background or self._gate is None:
            return False
        return self._gate.state_of(task.id) is SlotState.QUEUED

    def _forget(self, task_id: str) -> str | None:
        record = self._tasks.pop(task_id, None)
        if record is None or not record.is_background or self._gate is None:
            return None
        return self._gate.release(task_id)

    def _dispatch(self, body: ToastBody) -> None:
        payload = body.to_payload()
        try:
            result = self._sink.show_toast(payload)
        except Exception as e:
            self._logger.warning("toast_delivery_failed", title=body.title, error=str(e))
            return

        if not inspect.isawaitable(result):
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("toast_dropped_no_event_loop", title=body.title)
            if inspect.iscoroutine(result):
                result.close()
            return

        future = asyncio.ensure_future(result)
        self._pending.add(future)
        future.add_done_callback(self._on_delivered)

    def _on_delivered(self, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.warning("toast_delivery_failed", error=str(error))
