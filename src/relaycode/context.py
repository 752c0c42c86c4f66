"""Project context: root detection and the system prompt."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path

from relaycode.logger import get_logger

logger = get_logger(__name__)

PROJECT_MARKERS = (
    ".git",
    "package.json",
    "Cargo.toml",
    "go.mod",
    "pyproject.toml",
    "Gemfile",
    "pom.xml",
    "build.gradle",
    "composer.json",
    "Package.swift",
    "Makefile",
)

AGENTS_MD = "AGENTS.md"
MAX_AGENTS_MD_CHARS = 4000
SYSTEM_PROMPT_PREFIX = "You are a coding assistant."


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from ``start`` to the nearest directory holding a project marker.

    Falls back to ``start`` itself when no marker is found.
    """
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        if any((directory / marker).exists() for marker in PROJECT_MARKERS):
            return directory
    return origin


def detect_project_name(root: Path) -> str:
    """Name from package.json or pyproject.toml, else the directory name."""
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            name = json.loads(package_json.read_text(encoding="utf-8")).get("name")
            if isinstance(name, str) and name:
                return name
        except (json.JSONDecodeError, OSError, AttributeError):
            logger.debug("package_json_unreadable", path=str(package_json))

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            name = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {}).get("name")
            if isinstance(name, str) and name:
                return name
        except (tomllib.TOMLDecodeError, OSError):
            logger.debug("pyproject_unreadable", path=str(pyproject))

    return root.name


@dataclass(slots=True)
class ProjectContext:
    """What the model is told about the project it works in."""

    root: Path
    name: str
    agents_md: str | None = None

    @classmethod
    def detect(cls, start: Path | None = None) -> ProjectContext:
        return cls.for_root(find_project_root(start))

    @classmethod
    def for_root(cls, root: Path) -> ProjectContext:
        root = root.resolve()
        agents_path = root / AGENTS_MD
        agents_md: str | None = None
        if agents_path.is_file():
            try:
                agents_md = agents_path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                logger.warning("agents_md_unreadable", path=str(agents_path))
        return cls(root=root, name=detect_project_name(root), agents_md=agents_md)

    def describe(self) -> str:
        parts = [f"## Project: {self.name}", f"Root: {self.root}"]
        if self.agents_md:
            content = self.agents_md
            if len(content) > MAX_AGENTS_MD_CHARS:
                content = content[:MAX_AGENTS_MD_CHARS] + "\n..."
            parts.append(f"\n## {AGENTS_MD}\n{content}")
        return "\n".join(parts)

    def system_prompt(self) -> str:
        return f"{SYSTEM_PROMPT_PREFIX}\n\n{self.describe()}"
