"""Session agent identity lookup.

Works out which named agent is driving a session, so that policy hooks can
apply per-agent restrictions. The answer comes from an explicit per-session
store first and falls back to the session's persisted message records, one
JSON file per message, read in file-name order.

A store instance belongs to one host process and is passed to whoever needs
it; nothing here is module-level state.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from taskgate.config import SessionConfig

logger = structlog.get_logger(__name__)


class MessageStorage:
    """Read-only view of persisted message records.

    Layout: ``<root>/<session_id>/<message>.json``, each file a JSON object
    that may carry an ``agent`` field.

    Args:
        root: Directory holding one sub-directory per session.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def from_config(cls, config: SessionConfig) -> MessageStorage:
        return cls(config.message_storage)

    def session_dir(self, session_id: str) -> Path:
        return self.root / session_id

    def iter_records(self, session_id: str) -> Iterator[dict[str, Any]]:
        """Yield a session's message records in file-name order.

        Unreadable or non-object files are skipped with a warning.

        Args:
            session_id: Session whose messages to read.

        Yields:
            Parsed message records.
        """
        directory = self.session_dir(session_id)
        if not directory.is_dir():
            return

        for path in sorted(directory.glob("*.json")):
            try:
                record = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(
                    "message_record_unreadable",
                    session_id=session_id,
                    path=str(path),
                    error=str(e),
                )
                continue
            if isinstance(record, dict):
                yield record


class SessionAgentStore:
    """Per-session record of the last agent seen producing output.

    Args:
        storage: Optional persisted message storage consulted when the
            in-memory store has no entry for a session.
    """

    def __init__(self, storage: MessageStorage | None = None) -> None:
        self._storage = storage
        self._agents: dict[str, str] = {}
        self._lock = threading.Lock()
        self._logger = logger.bind(component="SessionAgentStore")

    def record(self, session_id: str, agent: str) -> None:
        """Remember the agent most recently active in a session."""
        with self._lock:
            self._agents[session_id] = agent
        self._logger.debug("session_agent_recorded", session_id=session_id, agent=agent)

    def forget(self, session_id: str) -> None:
        """Drop a session's entry when the session ends."""
        with self._lock:
            self._agents.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._agents.clear()

    def lookup(self, session_id: str) -> str | None:
        """Return the agent driving a session.

        Args:
            session_id: Session to look up.

        Returns:
            Agent name, or None when the agent is unknown.
        """
        with self._lock:
            agent = self._agents.get(session_id)
        if agent is not None:
            return agent

        if self._storage is None:
            return None

        last_agent: str | None = None
        for record in self._storage.iter_records(session_id):
            value = record.get("agent")
            if isinstance(value, str) and value:
                last_agent = value

        if last_agent is None:
            self._logger.debug("session_agent_unknown", session_id=session_id)
        return last_agent
