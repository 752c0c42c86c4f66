"""Tool registry for managing and executing tools."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from relaycode.errors import ToolError, ToolTimeoutError
from relaycode.logger import get_logger
from relaycode.tools.base import Tool, ToolContext
from relaycode.tools.permission import AllowAllPermissions, PermissionChecker
from relaycode.types.messages import ToolResult, ToolSpec

logger = get_logger(__name__)

MAX_LINES = 2000
MAX_BYTES = 50 * 1024
MAX_LINE_LENGTH = 2000


def truncate_output(text: str) -> tuple[str, bool]:
    """Cap output by line count, byte size and line length.

    Returns the (possibly shortened) text and whether anything was cut.
    """
    lines = text.split("\n")
    kept: list[str] = []
    byte_count = 0

    for count, line in enumerate(lines):
        if len(line) > MAX_LINE_LENGTH:
            line = line[:MAX_LINE_LENGTH] + "..."
        line_bytes = len(line.encode("utf-8"))
        if byte_count + line_bytes > MAX_BYTES or count >= MAX_LINES:
            kept.append(
                f"\n... {len(lines) - count} lines truncated "
                f"(output exceeded {MAX_LINES} lines / {MAX_BYTES // 1024}KB) ..."
            )
            return "\n".join(kept), True
        kept.append(line)
        byte_count += line_bytes + 1

    return "\n".join(kept), False


class ToolRegistry:
    """Registry for tool management and execution.

    ``execute`` never raises for tool failures: unknown tools, invalid
    arguments, permission denials, timeouts and exceptions from the tool
    body all come back as an error :class:`ToolResult`. Only cancellation
    propagates.
    """

    def __init__(
        self,
        *,
        permission_checker: PermissionChecker | None = None,
        default_timeout: float = 120.0,
    ) -> None:
        self._tools: dict[str, Tool] = {}
        self._permission_checker = permission_checker or AllowAllPermissions()
        self._default_timeout = default_timeout

    @property
    def tool_count(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def specs_for(self, ids: Iterable[str]) -> list[ToolSpec]:
        """Return specs for ``ids`` in the given order, skipping unknown ids."""
        specs: list[ToolSpec] = []
        for tool_id in ids:
            tool = self._tools.get(tool_id)
            if tool is None:
                logger.warning("unknown_tool_id", tool=tool_id)
                continue
            specs.append(tool.to_spec())
        return specs

    async def execute(
        self,
        tool_name: str,
        args: dict[str, Any],
        context: ToolContext,
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        tool = self._tools.get(tool_name)
        if tool is None:
            available = ", ".join(self._tools.keys())
            return ToolResult.error(
                f"Unknown tool: {tool_name}",
                f'Tool "{tool_name}" not found. Available tools: {available}',
            )

        try:
            params = tool.params.model_validate(args)
        except ValidationError as e:
            return ToolResult.error(
                f"Invalid arguments: {tool_name}",
                f'Tool "{tool_name}" received invalid arguments: {e}',
            )

        perm = await self._permission_checker.check(tool_name, args)
        if not perm.allowed:
            return ToolResult.error(
                f"Permission denied: {tool_name}",
                perm.reason or f'Tool "{tool_name}" is not allowed.',
                permission=True,
            )

        effective_timeout = timeout or self._default_timeout
        try:
            result = await asyncio.wait_for(tool.execute(params, context), timeout=effective_timeout)
        except asyncio.TimeoutError:
            err = ToolTimeoutError(tool_name, effective_timeout)
            return ToolResult.error(f"Timeout: {tool_name}", str(err), timeout=effective_timeout)
        except ToolError as e:
            return ToolResult.error(f"Error: {tool_name}", f'Tool "{tool_name}" failed: {e}')
        except Exception as e:
            logger.debug("tool_exception", tool=tool_name, error=repr(e))
            return ToolResult.error(
                f"Error: {tool_name}",
                f'Tool "{tool_name}" failed: {type(e).__name__}: {e}',
            )

        output, truncated = truncate_output(result.output)
        result.output = output
        result.metadata = {**result.metadata, "truncated": truncated}
        return result
