"""Unit tests for built-in skills and the skill catalog."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from taskgate.skills import BuiltinSkill, SkillCatalog, create_builtin_skills


@pytest.fixture
def catalog() -> SkillCatalog:
    return SkillCatalog()


@pytest.fixture
def small_catalog() -> SkillCatalog:
    return SkillCatalog(
        [
            BuiltinSkill(name="alpha", description="First", template="ALPHA"),
            BuiltinSkill(name="beta", description="Second", template="BETA"),
        ]
    )


class TestBuiltinSkills:
    """Tests for the shipped skill set."""

    def test_builtin_names(self) -> None:
        names = [skill.name for skill in create_builtin_skills()]
        assert names == ["playwright", "frontend-ui-ux", "git-master", "super-analyst"]

    def test_every_skill_has_template(self) -> None:
        for skill in create_builtin_skills():
            assert skill.template.strip()
            assert skill.description.strip()

    def test_playwright_declares_mcp_server(self) -> None:
        playwright = SkillCatalog().get("playwright")
        assert playwright is not None
        assert playwright.mcp_config == {
            "playwright": {"command": "npx", "args": ["@playwright/mcp@latest"]}
        }


class TestResolve:
    """Tests for single and batch resolution."""

    def test_resolve_known_skill(self, catalog: SkillCatalog) -> None:
        content = catalog.resolve("playwright")
        assert content is not None
        assert content.startswith("# Playwright Browser Automation")

    @pytest.mark.parametrize("name", ["", "no-such-skill"])
    def test_resolve_unknown_returns_none(self, catalog: SkillCatalog, name: str) -> None:
        assert catalog.resolve(name) is None

    def test_contains(self, catalog: SkillCatalog) -> None:
        assert "git-master" in catalog
        assert "nope" not in catalog

    def test_resolve_many_splits_known_and_unknown(self, catalog: SkillCatalog) -> None:
        result = catalog.resolve_many(["playwright", "nope", "git-master", "missing"])

        assert list(result.resolved) == ["playwright", "git-master"]
        assert result.not_found == ["nope", "missing"]

    def test_resolve_many_empty(self, catalog: SkillCatalog) -> None:
        result = catalog.resolve_many([])
        assert result.resolved == {}
        assert result.not_found == []

    def test_later_skill_overrides_earlier(self) -> None:
        catalog = SkillCatalog(
            [
                BuiltinSkill(name="alpha", description="v1", template="OLD"),
                BuiltinSkill(name="alpha", description="v2", template="NEW"),
            ]
        )
        assert catalog.names() == ["alpha"]
        assert catalog.resolve("alpha") == "NEW"


class TestComposePrompt:
    """Tests for prompt composition."""

    def test_templates_prepended_in_order(self, small_catalog: SkillCatalog) -> None:
        prompt = small_catalog.compose_prompt("Do the task.", ["beta", "alpha"])
        assert prompt == "BETA\n\nALPHA\n\nDo the task."

    def test_no_skills_returns_base_prompt(self, small_catalog: SkillCatalog) -> None:
        assert small_catalog.compose_prompt("Do the task.", []) == "Do the task."

    def test_unknown_skills_skipped_and_logged(self, small_catalog: SkillCatalog) -> None:
        with patch("taskgate.skills.catalog.logger") as mock_logger:
            prompt = small_catalog.compose_prompt("Base", ["ghost", "alpha"])

        assert prompt == "ALPHA\n\nBase"
        mock_logger.warning.assert_called_once_with("skills_not_found", skills=["ghost"])

    def test_only_unknown_skills_returns_base_prompt(
        self, small_catalog: SkillCatalog
    ) -> None:
        with patch("taskgate.skills.catalog.logger"):
            assert small_catalog.compose_prompt("Base", ["ghost"]) == "Base"

    def test_template_syntax_in_skill_text_is_not_evaluated(self) -> None:
        catalog = SkillCatalog(
            [BuiltinSkill(name="raw", description="Raw", template="Use {{ braces }}")]
        )
        assert catalog.compose_prompt("Base", ["raw"]) == "Use {{ braces }}\n\nBase"
