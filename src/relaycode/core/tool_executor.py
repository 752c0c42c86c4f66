"""Tool executor - runs a round's tool calls one at a time, in order."""

from __future__ import annotations

import time
from collections.abc import Sequence

from relaycode.core.arguments import arguments_or_empty
from relaycode.core.context import LoopContext
from relaycode.errors import CancellationError
from relaycode.logger import get_logger
from relaycode.types.events import EventType
from relaycode.types.messages import Message, ToolCallRequest, ToolResult

logger = get_logger(__name__)


def tool_message_content(tool_name: str, result: ToolResult) -> str:
    """Content for the tool message; never empty."""
    return result.output or f"({tool_name} returned no output)"


def _not_enabled(tool_name: str, enabled: Sequence[str]) -> ToolResult:
    return ToolResult.error(
        f"Not enabled: {tool_name}",
        f'Tool "{tool_name}" is not enabled for this task. Enabled tools: {", ".join(enabled)}',
    )


async def execute_tool_calls(
    ctx: LoopContext,
    tool_calls: Sequence[ToolCallRequest],
) -> list[ToolResult]:
    """Execute ``tool_calls`` sequentially and append one tool message per call.

    A failing call does not stop the round: its error result is reported
    to the model like any other output. Progress events for a call are
    emitted before the next call starts.
    """
    results: list[ToolResult] = []

    for tc in tool_calls:
        if ctx.is_cancelled:
            raise CancellationError("Cancelled before tool execution")

        ctx.emit_simple(EventType.TOOL_START, tool=tc.name, call_id=tc.id, iteration=ctx.iteration)
        args = arguments_or_empty(tc.arguments, tool_name=tc.name)

        start = time.monotonic()
        if ctx.registry.has(tc.name) and tc.name not in ctx.tool_ids:
            result = _not_enabled(tc.name, ctx.tool_ids)
        else:
            result = await ctx.registry.execute(
                tc.name,
                args,
                ctx.tool_context,
                timeout=ctx.config.tool_timeout,
            )
        duration_ms = (time.monotonic() - start) * 1000

        ctx.session.append(Message.tool(tool_message_content(tc.name, result), tc.id))
        ctx.tool_calls_executed += 1
        results.append(result)

        logger.debug(
            "tool_executed",
            tool=tc.name,
            call_id=tc.id,
            is_error=result.is_error,
            duration_ms=round(duration_ms, 1),
        )
        ctx.emit_simple(
            EventType.TOOL_ERROR if result.is_error else EventType.TOOL_COMPLETE,
            tool=tc.name,
            call_id=tc.id,
            title=result.title,
            result=result.output,
            error=result.output if result.is_error else None,
            iteration=ctx.iteration,
            metadata={"duration_ms": duration_ms, **result.metadata},
        )

    return results
