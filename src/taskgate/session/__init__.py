"""Session agent identity and per-agent tool policies."""

from __future__ import annotations

from taskgate.session.identity import MessageStorage, SessionAgentStore
from taskgate.session.policy import (
    READ_ONLY_DIRECTIVE,
    PlannerWritePolicy,
    WritePolicyViolation,
)

__all__ = [
    "MessageStorage",
    "PlannerWritePolicy",
    "READ_ONLY_DIRECTIVE",
    "SessionAgentStore",
    "WritePolicyViolation",
]
