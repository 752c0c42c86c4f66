"""Tool-call argument parsing.

The endpoint sends arguments as raw text that is expected to be a JSON
object. Parsing is explicit: callers either inspect an
:class:`ArgumentParseResult` or opt into the single lenient policy,
:func:`arguments_or_empty`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from relaycode.errors import ToolArgumentsError
from relaycode.logger import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class ArgumentParseResult:
    """Outcome of parsing a tool call's argument text."""

    arguments: dict[str, Any] = field(default_factory=dict)
    error: ToolArgumentsError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_tool_arguments(text: str | None) -> ArgumentParseResult:
    """Parse argument text into a mapping.

    Empty or whitespace-only text is treated as an empty object.
    """
    raw = text or ""
    if not raw.strip():
        return ArgumentParseResult()

    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        return ArgumentParseResult(
            error=ToolArgumentsError(f"Invalid JSON in tool arguments: {e.msg}", raw=raw),
        )

    if not isinstance(value, dict):
        return ArgumentParseResult(
            error=ToolArgumentsError(
                f"Tool arguments must be a JSON object, got {type(value).__name__}",
                raw=raw,
            ),
        )
    return ArgumentParseResult(arguments=value)


def arguments_or_empty(text: str | None, *, tool_name: str | None = None) -> dict[str, Any]:
    """Parse arguments, substituting an empty mapping when they are invalid."""
    result = parse_tool_arguments(text)
    if result.error is not None:
        logger.warning(
            "tool_arguments_fallback",
            tool=tool_name,
            error=str(result.error),
            raw=result.error.raw[:200],
        )
    return result.arguments
