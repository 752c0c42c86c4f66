"""Orchestration loop - alternates completion requests and tool execution.

Each run moves through AWAITING_COMPLETION and EXECUTING_TOOLS until the
model answers without tool calls (DONE) or the run fails (FAILED). Every
outcome, including transport errors, budget exhaustion and cancellation,
comes back as a single :class:`LoopResult`; no exception crosses the
loop boundary.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum

from relaycode.core.context import LoopContext
from relaycode.core.response_handler import request_completion
from relaycode.core.state_machine import LoopState
from relaycode.core.tool_executor import execute_tool_calls
from relaycode.errors import (
    CancellationError,
    IterationBudgetExceededError,
    LLMError,
    RelayError,
)
from relaycode.logger import get_logger
from relaycode.types.events import EventType
from relaycode.types.messages import Message

logger = get_logger(__name__)


class CompletionReason(StrEnum):
    """Why a run ended."""

    COMPLETED = "completed"
    MAX_ITERATIONS = "max_iterations"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class LoopResult:
    """Result of one orchestration run."""

    success: bool
    state: LoopState
    reason: CompletionReason
    response: str = ""
    message: str = ""
    round_trips: int = 0
    tool_calls: int = 0
    error: RelayError | None = None


def _finish(ctx: LoopContext, content: str | None) -> LoopResult:
    ctx.session.append(Message.assistant(content))
    ctx.state.finish()
    ctx.emit_simple(EventType.COMPLETE, iteration=ctx.iteration, result=content)
    return LoopResult(
        success=True,
        state=ctx.state.state,
        reason=CompletionReason.COMPLETED,
        response=content or "",
        round_trips=ctx.iteration,
        tool_calls=ctx.tool_calls_executed,
    )


def _fail(ctx: LoopContext, reason: CompletionReason, error: RelayError) -> LoopResult:
    if not ctx.state.is_terminal:
        ctx.state.fail(str(reason))
    ctx.emit_simple(EventType.ERROR, error=str(error), iteration=ctx.iteration, metadata={"reason": str(reason)})
    logger.info("loop_failed", reason=str(reason), error=str(error), round_trips=ctx.iteration)
    return LoopResult(
        success=False,
        state=ctx.state.state,
        reason=reason,
        message=str(error),
        round_trips=ctx.iteration,
        tool_calls=ctx.tool_calls_executed,
        error=error,
    )


async def run_orchestration_loop(ctx: LoopContext) -> LoopResult:
    """Drive one task to completion.

    The iteration budget counts entries into AWAITING_COMPLETION and is
    checked before each one.
    """
    ctx.emit_simple(EventType.START, metadata={"max_iterations": ctx.config.max_iterations})

    try:
        while True:
            if ctx.is_cancelled:
                raise CancellationError()
            if not ctx.check_iteration_budget():
                ctx.emit_simple(
                    EventType.BUDGET_EXHAUSTED,
                    iteration=ctx.iteration,
                    metadata={"max_iterations": ctx.config.max_iterations},
                )
                raise IterationBudgetExceededError(ctx.config.max_iterations)

            ctx.state.await_completion()
            ctx.iteration += 1
            ctx.emit_simple(EventType.ITERATION, iteration=ctx.iteration)

            response = await request_completion(ctx)

            if not response.has_tool_calls:
                return _finish(ctx, response.content)

            ctx.session.append(Message.assistant(response.content, list(response.tool_calls)))
            ctx.state.execute_tools(len(response.tool_calls))
            await execute_tool_calls(ctx, response.tool_calls)

    except IterationBudgetExceededError as e:
        return _fail(ctx, CompletionReason.MAX_ITERATIONS, e)
    except CancellationError as e:
        return _fail(ctx, CompletionReason.CANCELLED, e)
    except asyncio.CancelledError:
        return _fail(ctx, CompletionReason.CANCELLED, CancellationError())
    except RelayError as e:
        return _fail(ctx, CompletionReason.ERROR, e)
    except Exception as e:
        logger.exception("loop_unexpected_error")
        return _fail(ctx, CompletionReason.ERROR, LLMError(f"Unexpected error: {e}"))
