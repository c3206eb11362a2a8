"""Built-in skill definitions for Taskgate.

A skill is reusable prompt text that is prepended to an agent's base prompt
when a task is launched with that skill name. Skill names also appear in
the status toast under each task.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class BuiltinSkill(BaseModel):
    """A named, reusable block of prompt text.

    Attributes:
        name: Identifier used in task ``skills`` lists.
        description: One-line summary of when to use the skill.
        template: Prompt text prepended to the agent prompt.
        mcp_config: Optional MCP server definitions the skill relies on.
    """

    name: str
    description: str
    template: str
    mcp_config: dict[str, Any] | None = Field(default=None)


PLAYWRIGHT = BuiltinSkill(
    name="playwright",
    description=(
        "Browser automation via the Playwright MCP server: verification, "
        "browsing, scraping, screenshots and UI testing."
    ),
    template="""# Playwright Browser Automation

This skill provides browser automation capabilities via the Playwright MCP server.

- Navigate to pages and wait for the network to settle before reading content.
- Prefer accessibility snapshots over screenshots when extracting text.
- Take a screenshot when reporting a visual defect.
- Close pages you opened once the check is complete.""",
    mcp_config={
        "playwright": {
            "command": "npx",
            "args": ["@playwright/mcp@latest"],
        }
    },
)

FRONTEND_UI_UX = BuiltinSkill(
    name="frontend-ui-ux",
    description="Designer-turned-developer who builds polished interfaces without mockups.",
    template="""# Role: Designer-Turned-Developer

You care about spacing, colour harmony, typography and motion as much as
about correct code.

- Start from the existing design language of the project; extend, do not replace it.
- Keep components accessible: labels, focus order, contrast.
- Verify the result in a browser at mobile and desktop widths.""",
)

GIT_MASTER = BuiltinSkill(
    name="git-master",
    description=(
        "Git specialist for atomic commits, rebase and squash work, and "
        "history search with blame, bisect and log -S."
    ),
    template="""# Git Master

You combine three specializations:
1. **Commit Architect**: atomic commits, dependency ordering, matching the repository's message style
2. **Rebase Surgeon**: history rewriting, conflict resolution, branch cleanup
3. **History Archaeologist**: finding when and where a change was introduced

- Inspect `git status` and `git log --oneline -20` before changing anything.
- One logical change per commit; a function and its test belong together.
- Never force-push a shared branch without being asked to.""",
)

SUPER_ANALYST = BuiltinSkill(
    name="super-analyst",
    description=(
        "Structured analysis with professional frameworks and web research "
        "for strategy and decision-making questions."
    ),
    template="""# Super Analyst

Work in stages:
1. Restate the problem and what a good answer must contain.
2. Plan which facts are missing and gather them.
3. Apply the framework that fits (first principles, SWOT, Porter's Five Forces, ...).
4. Conclude with a recommendation, its confidence, and what would change it.""",
)


def create_builtin_skills() -> list[BuiltinSkill]:
    """Return the skills shipped with Taskgate, in display order."""
    return [PLAYWRIGHT, FRONTEND_UI_UX, GIT_MASTER, SUPER_ANALYST]
