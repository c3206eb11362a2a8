"""Skill name to prompt text resolution.

The catalog answers two questions for the prompt builder: what text does a
skill contribute, and which of a task's requested skills are unknown.
Resolution never raises; unknown names are reported back to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from jinja2 import Environment, StrictUndefined
from pydantic import BaseModel, Field

from taskgate.skills.builtin import BuiltinSkill, create_builtin_skills

logger = structlog.get_logger(__name__)

PROMPT_TEMPLATE = """\
{% for name, content in skills.items() %}{{ content }}

{% endfor %}{{ base_prompt }}"""


class SkillResolution(BaseModel):
    """Outcome of resolving several skill names at once.

    Attributes:
        resolved: Skill name to template text, in request order.
        not_found: Requested names with no matching skill, in request order.
    """

    resolved: dict[str, str] = Field(default_factory=dict)
    not_found: list[str] = Field(default_factory=list)


class SkillCatalog:
    """Lookup table of skills keyed by name.

    Args:
        skills: Skills to expose. Defaults to the built-in set. A later skill
            with the same name replaces an earlier one.
    """

    def __init__(self, skills: Iterable[BuiltinSkill] | None = None) -> None:
        if skills is None:
            skills = create_builtin_skills()
        self._skills: dict[str, BuiltinSkill] = {skill.name: skill for skill in skills}
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )
        self._template = self._env.from_string(PROMPT_TEMPLATE)

    def __contains__(self, name: object) -> bool:
        return name in self._skills

    def names(self) -> list[str]:
        """Return all known skill names."""
        return list(self._skills)

    def get(self, name: str) -> BuiltinSkill | None:
        """Return the full skill definition for a name, if known."""
        return self._skills.get(name)

    def resolve(self, name: str) -> str | None:
        """Return the template text for one skill.

        Args:
            name: Skill name.

        Returns:
            Template text, or None if the name is empty or unknown.
        """
        if not name:
            return None
        skill = self._skills.get(name)
        return skill.template if skill else None

    def resolve_many(self, names: Iterable[str]) -> SkillResolution:
        """Resolve several skills, collecting the unknown names.

        Args:
            names: Skill names in the order they should be applied.

        Returns:
            SkillResolution with resolved templates and missing names.
        """
        result = SkillResolution()
        for name in names:
            content = self.resolve(name)
            if content is None:
                result.not_found.append(name)
            else:
                result.resolved[name] = content
        return result

    def compose_prompt(self, base_prompt: str, names: Iterable[str]) -> str:
        """Prepend the templates of the requested skills to a prompt.

        Unknown skill names are skipped and logged.

        Args:
            base_prompt: The agent's own prompt text.
            names: Skill names to prepend, in order.

        Returns:
            Combined prompt text.
        """
        resolution = self.resolve_many(names)
        if resolution.not_found:
            logger.warning("skills_not_found", skills=resolution.not_found)
        if not resolution.resolved:
            return base_prompt

        return self._template.render(
            skills=resolution.resolved,
            base_prompt=base_prompt,
        )
