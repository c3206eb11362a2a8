"""Skill definitions and name resolution for Taskgate."""

from __future__ import annotations

from taskgate.skills.builtin import BuiltinSkill, create_builtin_skills
from taskgate.skills.catalog import SkillCatalog, SkillResolution

__all__ = [
    "BuiltinSkill",
    "SkillCatalog",
    "SkillResolution",
    "create_builtin_skills",
]
