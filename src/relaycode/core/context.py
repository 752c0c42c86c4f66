"""LoopContext - dependency bundle for one orchestration run."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from relaycode.core.session import ConversationSession
from relaycode.core.state_machine import LoopState, LoopStateMachine
from relaycode.errors import ConfigurationError
from relaycode.logger import get_logger
from relaycode.providers.base import CompletionClient
from relaycode.tools.base import ToolContext
from relaycode.tools.registry import ToolRegistry
from relaycode.tools.standard import DEFAULT_TOOL_IDS
from relaycode.types.events import EventType, LoopEvent

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 20

# Default retry config
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0

EventHandler = Callable[[LoopEvent], Any]
FragmentHandler = Callable[[str], Any]


@dataclass(slots=True)
class LoopConfig:
    """Per-run settings for the orchestration loop."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    streaming: bool = False
    chunk_timeout: float | None = None
    tool_timeout: float | None = None
    max_retries: int = MAX_RETRIES
    retry_base_delay: float = RETRY_BASE_DELAY

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {self.max_iterations}")


@dataclass
class LoopContext:
    """Bundle of everything the loop, tool executor and response handler need.

    One context drives one task; it owns the task's session.
    """

    client: CompletionClient
    registry: ToolRegistry
    session: ConversationSession
    config: LoopConfig = field(default_factory=LoopConfig)
    tool_ids: Sequence[str] = DEFAULT_TOOL_IDS
    project_root: Path = field(default_factory=Path.cwd)

    # Streaming output sink
    on_fragment: FragmentHandler | None = None

    # State
    state: LoopStateMachine = field(default_factory=LoopStateMachine)
    iteration: int = 0
    tool_calls_executed: int = 0

    # Cancellation
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)

    _event_handlers: list[EventHandler] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self.state.on_transition(self._emit_state_change)

    def _emit_state_change(self, from_state: LoopState, to_state: LoopState, metadata: dict[str, Any]) -> None:
        self.emit_simple(
            EventType.STATE_CHANGE,
            iteration=self.iteration,
            metadata={"from": str(from_state), "to": str(to_state), **metadata},
        )

    def on_event(self, handler: EventHandler) -> None:
        """Register an event handler."""
        self._event_handlers.append(handler)

    def emit(self, event: LoopEvent) -> None:
        """Emit an event to all registered handlers, in registration order."""
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.warning("event_handler_failed", event_type=str(event.type), exc_info=True)

    def emit_simple(self, event_type: EventType, **kwargs: Any) -> None:
        self.emit(LoopEvent(type=event_type, **kwargs))

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()

    def cancel(self) -> None:
        """Request cancellation of the current run."""
        self.cancelled.set()

    def check_iteration_budget(self) -> bool:
        """Return True while another round trip is allowed."""
        return self.iteration < self.config.max_iterations

    @property
    def tool_context(self) -> ToolContext:
        return ToolContext(project_root=self.project_root)
