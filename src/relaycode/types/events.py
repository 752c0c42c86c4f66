"""Loop event types.

Events are emitted synchronously by the orchestration loop so drivers can
render progress in the same order the work happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Types of loop events."""

    # --- Lifecycle ---
    START = "start"
    COMPLETE = "complete"
    ERROR = "error"

    # --- Execution core ---
    ITERATION = "iteration"
    STATE_CHANGE = "state.change"

    # --- Tool events ---
    TOOL_START = "tool.start"
    TOOL_COMPLETE = "tool.complete"
    TOOL_ERROR = "tool.error"

    # --- LLM events ---
    LLM_START = "llm.start"
    LLM_COMPLETE = "llm.complete"
    LLM_ERROR = "llm.error"
    LLM_RETRY = "llm.retry"
    LLM_STREAM_START = "llm.stream.start"
    LLM_STREAM_END = "llm.stream.end"

    # --- Budget events ---
    BUDGET_EXHAUSTED = "budget.exhausted"


class EventCategory(StrEnum):
    """Categories for event grouping."""

    LIFECYCLE = "lifecycle"
    EXECUTION = "execution"
    TOOL = "tool"
    LLM = "llm"
    BUDGET = "budget"


def get_event_category(event_type: EventType) -> EventCategory:
    """Get the category for an event type."""
    name = event_type.value
    if name in ("start", "complete", "error"):
        return EventCategory.LIFECYCLE
    if name.startswith("tool."):
        return EventCategory.TOOL
    if name.startswith("llm."):
        return EventCategory.LLM
    if name.startswith("budget."):
        return EventCategory.BUDGET
    return EventCategory.EXECUTION


@dataclass
class LoopEvent:
    """An event emitted during loop execution."""

    type: EventType
    tool: str | None = None
    call_id: str | None = None
    title: str | None = None
    result: str | None = None
    error: str | None = None
    iteration: int | None = None
    metadata: dict[str, Any] | None = None

    @property
    def category(self) -> EventCategory:
        return get_event_category(self.type)
