"""Search tools: grep."""

from __future__ import annotations

import re

from pydantic import Field

from relaycode.tools.base import Tool, ToolContext, ToolKind, ToolParam
from relaycode.tools.file_ops import IGNORED_DIRS
from relaycode.types.messages import ToolResult


class GrepParams(ToolParam):
    pattern: str = Field(description="Regular expression to search for")
    path: str = Field(default=".", description="File or directory to search")
    glob: str | None = Field(default=None, description="Only search files matching this glob")
    max_results: int = Field(default=50, ge=1)
    case_insensitive: bool = False


async def grep_search(params: GrepParams, ctx: ToolContext) -> ToolResult:
    root = ctx.resolve(params.path)
    if not root.exists():
        return ToolResult.error("Not found", f"Path not found: {root}")

    flags = re.IGNORECASE if params.case_insensitive else 0
    try:
        regex = re.compile(params.pattern, flags)
    except re.error as e:
        return ToolResult.error("Invalid pattern", f"Invalid regex pattern: {e}")

    matches: list[str] = []
    files = [root] if root.is_file() else sorted(root.rglob(params.glob or "*"))

    for file in files:
        if not file.is_file() or file.name.startswith("."):
            continue
        if root.is_dir() and IGNORED_DIRS.intersection(file.relative_to(root).parts):
            continue
        try:
            content = file.read_text(encoding="utf-8", errors="strict")
        except (UnicodeDecodeError, OSError):
            continue

        rel = file.relative_to(root) if root.is_dir() else file.name
        for i, line in enumerate(content.splitlines(), 1):
            if regex.search(line):
                matches.append(f"{rel}:{i}: {line.strip()}")
                if len(matches) >= params.max_results:
                    break
        if len(matches) >= params.max_results:
            break

    if not matches:
        return ToolResult(output="No matches found", title="No matches")

    result = "\n".join(matches)
    if len(matches) >= params.max_results:
        result += f"\n... (limited to {params.max_results} results)"
    return ToolResult(output=result, title=f"grep: {params.pattern}", metadata={"count": len(matches)})


def create_search_tools() -> list[Tool]:
    return [
        Tool(
            name=ToolKind.GREP.value,
            description="Search file contents using regex patterns.",
            params=GrepParams,
            execute=grep_search,
        ),
    ]
