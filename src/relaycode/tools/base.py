"""Tool base types and abstractions."""

from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from relaycode.types.messages import ToolResult, ToolSpec


class ToolKind(StrEnum):
    """The fixed set of built-in tools."""

    READ = "read"
    WRITE = "write"
    EDIT = "edit"
    BASH = "bash"
    GREP = "grep"
    GLOB = "glob"
    LIST = "list"
    GIT = "git"


class ToolParam(BaseModel):
    """Pydantic model for tool parameter validation."""

    model_config = {"extra": "forbid"}


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Execution environment handed to every tool."""

    project_root: Path

    def resolve(self, path: str) -> Path:
        p = Path(path).expanduser()
        if not p.is_absolute():
            p = self.project_root / p
        return p.resolve()


ToolHandler = Callable[[Any, ToolContext], Awaitable[ToolResult]]


@dataclass
class Tool:
    """A registered tool: its parameter model and execute function.

    ``execute`` receives a validated instance of ``params``.
    """

    name: str
    description: str
    params: type[ToolParam]
    execute: ToolHandler

    def to_spec(self) -> ToolSpec:
        """Build the endpoint-facing spec. Each call returns fresh dicts."""
        return ToolSpec(
            name=self.name,
            description=self.description,
            parameters=copy.deepcopy(self.params.model_json_schema()),
        )
