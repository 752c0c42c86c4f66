"""Tests for project root detection and the system prompt."""

from __future__ import annotations

import json
from pathlib import Path

from relaycode.context import (
    MAX_AGENTS_MD_CHARS,
    ProjectContext,
    detect_project_name,
    find_project_root,
)


class TestFindProjectRoot:
    def test_walks_up_to_marker(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

    def test_nearest_marker_wins(self, tmp_workdir: Path) -> None:
        inner = tmp_workdir / "sub"
        inner.mkdir()
        (inner / "package.json").write_text("{}")
        assert find_project_root(inner) == inner.resolve()


class TestDetectProjectName:
    def test_package_json(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(json.dumps({"name": "web-app"}))
        assert detect_project_name(tmp_path) == "web-app"

    def test_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "tooling"\n')
        assert detect_project_name(tmp_path) == "tooling"

    def test_falls_back_to_directory_name(self, tmp_path: Path) -> None:
        project = tmp_path / "plain"
        project.mkdir()
        (project / "package.json").write_text("not json")
        assert detect_project_name(project) == "plain"


class TestProjectContext:
    def test_system_prompt(self, tmp_workdir: Path) -> None:
        ctx = ProjectContext.for_root(tmp_workdir)
        prompt = ctx.system_prompt()
        assert prompt.startswith("You are a coding assistant.\n\n## Project: ")
        assert f"Root: {tmp_workdir.resolve()}" in prompt

    def test_agents_md_included_and_capped(self, tmp_workdir: Path) -> None:
        (tmp_workdir / "AGENTS.md").write_text("R" * (MAX_AGENTS_MD_CHARS + 100))
        description = ProjectContext.for_root(tmp_workdir).describe()
        assert "## AGENTS.md" in description
        assert "R" * MAX_AGENTS_MD_CHARS + "\n..." in description
        assert "R" * (MAX_AGENTS_MD_CHARS + 1) not in description

    def test_detect_from_subdirectory(self, tmp_workdir: Path) -> None:
        nested = tmp_workdir / "deep"
        nested.mkdir()
        assert ProjectContext.detect(nested).root == tmp_workdir.resolve()
