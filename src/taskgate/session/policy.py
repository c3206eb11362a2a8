"""Write restrictions for planner agents.

Planner agents may only produce markdown plans inside the planning workspace
directory, and any work they delegate to other agents is marked as a
read-only consultation. Sessions whose agent is unknown are not restricted.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any

import structlog

from taskgate.config import SessionConfig
from taskgate.session.identity import SessionAgentStore

logger = structlog.get_logger(__name__)

WRITE_TOOLS = frozenset({"Write", "Edit"})
DELEGATE_TOOLS = frozenset({"chief_task", "task", "call_omo_agent"})

READ_ONLY_DIRECTIVE = "[SYSTEM DIRECTIVE - READ-ONLY PLANNING CONSULTATION]"
READ_ONLY_NOTICE = (
    f"{READ_ONLY_DIRECTIVE}\n"
    "You are being consulted by a planning agent. DO NOT modify any files. "
    "Research, read and report back only.\n\n"
)


class WritePolicyViolation(PermissionError):
    """Raised when a restricted agent attempts a forbidden write.

    Attributes:
        agent: Agent that attempted the write.
        tool: Tool that was called.
        file_path: Target path of the write.
    """

    def __init__(self, agent: str, tool: str, file_path: str, reason: str) -> None:
        self.agent = agent
        self.tool = tool
        self.file_path = file_path
        super().__init__(f"{agent} {reason} (attempted {tool} on {file_path})")


class PlannerWritePolicy:
    """Tool-call hook enforcing markdown-only writes for planner agents.

    Args:
        store: Session agent lookup.
        config: Session settings naming the planner agents and workspace.
    """

    def __init__(self, store: SessionAgentStore, config: SessionConfig | None = None) -> None:
        self._store = store
        self._config = config or SessionConfig()
        self._planners = frozenset(self._config.planner_agents)
        self._logger = logger.bind(component="PlannerWritePolicy")

    def is_restricted(self, session_id: str) -> bool:
        """Whether the session is driven by a planner agent."""
        agent = self._store.lookup(session_id)
        return agent is not None and agent in self._planners

    def before_tool(self, tool: str, session_id: str, args: dict[str, Any]) -> None:
        """Check or rewrite a tool call before it executes.

        Args:
            tool: Tool name.
            session_id: Session issuing the call.
            args: Tool arguments, modified in place for delegate tools.

        Raises:
            WritePolicyViolation: If a planner writes outside the allowed files.
        """
        agent = self._store.lookup(session_id)
        if agent is None or agent not in self._planners:
            return

        if tool in WRITE_TOOLS:
            self._check_write(agent, tool, args.get("filePath"))
        elif tool in DELEGATE_TOOLS:
            self._mark_read_only(session_id, tool, args)

    def _check_write(self, agent: str, tool: str, file_path: Any) -> None:
        if not isinstance(file_path, str) or not file_path:
            return

        path = PurePath(file_path)
        workspace = self._config.workspace_dir
        if path.suffix.lower() != ".md":
            self._logger.warning(
                "planner_write_blocked",
                agent=agent,
                tool=tool,
                file_path=file_path,
                reason="not_markdown",
            )
            raise WritePolicyViolation(
                agent, tool, file_path, "can only write/edit .md files"
            )

        # ".." segments are refused outright rather than resolved
        if ".." in path.parts or workspace not in path.parts[:-1]:
            self._logger.warning(
                "planner_write_blocked",
                agent=agent,
                tool=tool,
                file_path=file_path,
                reason="outside_workspace",
            )
            raise WritePolicyViolation(
                agent, tool, file_path, f"can only write/edit .md files inside {workspace}/"
            )

    def _mark_read_only(self, session_id: str, tool: str, args: dict[str, Any]) -> None:
        prompt = args.get("prompt")
        if not isinstance(prompt, str) or READ_ONLY_DIRECTIVE in prompt:
            return
        args["prompt"] = READ_ONLY_NOTICE + prompt
        self._logger.info("read_only_directive_injected", session_id=session_id, tool=tool)
