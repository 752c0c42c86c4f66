"""Orchestration core: session, state machine, tool execution and the loop."""

from relaycode.core.context import LoopConfig, LoopContext
from relaycode.core.loop import CompletionReason, LoopResult, run_orchestration_loop
from relaycode.core.session import ConversationSession

__all__ = [
    "CompletionReason",
    "ConversationSession",
    "LoopConfig",
    "LoopContext",
    "LoopResult",
    "run_orchestration_loop",
]
