"""Orchestration loop state machine.

Provides formal state transitions for one loop run and records the
transition history so tests and drivers can inspect how a run ended.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable

from relaycode.logger import get_logger

logger = get_logger(__name__)


class LoopState(StrEnum):
    """States of a single orchestration run."""

    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting_completion"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({LoopState.DONE, LoopState.FAILED})

# Valid transitions: (from_state, to_state)
VALID_TRANSITIONS: set[tuple[LoopState, LoopState]] = {
    (LoopState.IDLE, LoopState.AWAITING_COMPLETION),
    (LoopState.AWAITING_COMPLETION, LoopState.DONE),
    (LoopState.AWAITING_COMPLETION, LoopState.EXECUTING_TOOLS),
    (LoopState.EXECUTING_TOOLS, LoopState.AWAITING_COMPLETION),
    # Any non-terminal state can fail
    (LoopState.IDLE, LoopState.FAILED),
    (LoopState.AWAITING_COMPLETION, LoopState.FAILED),
    (LoopState.EXECUTING_TOOLS, LoopState.FAILED),
}


TransitionListener = Callable[[LoopState, LoopState, dict[str, Any]], None]


class InvalidTransitionError(Exception):
    """Raised when a state transition is not allowed."""

    def __init__(self, from_state: LoopState, to_state: LoopState) -> None:
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")
        self.from_state = from_state
        self.to_state = to_state


@dataclass
class LoopStateMachine:
    """Tracks the state of one orchestration run."""

    _state: LoopState = field(default=LoopState.IDLE)
    _listeners: list[TransitionListener] = field(default_factory=list, repr=False)
    _history: list[tuple[LoopState, LoopState]] = field(default_factory=list, repr=False)

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def history(self) -> list[tuple[LoopState, LoopState]]:
        return list(self._history)

    def can_transition(self, to_state: LoopState) -> bool:
        return (self._state, to_state) in VALID_TRANSITIONS

    def transition(self, to_state: LoopState, *, metadata: dict[str, Any] | None = None) -> None:
        """Move to ``to_state``.

        Raises InvalidTransitionError if the transition is not allowed.
        """
        if not self.can_transition(to_state):
            raise InvalidTransitionError(self._state, to_state)

        from_state = self._state
        self._state = to_state
        self._history.append((from_state, to_state))

        meta = metadata or {}
        for listener in self._listeners:
            try:
                listener(from_state, to_state, meta)
            except Exception:
                logger.warning("transition_listener_failed", from_state=str(from_state), to_state=str(to_state))

    def on_transition(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    # Convenience methods

    def await_completion(self) -> None:
        self.transition(LoopState.AWAITING_COMPLETION)

    def execute_tools(self, count: int = 0) -> None:
        self.transition(LoopState.EXECUTING_TOOLS, metadata={"tool_calls": count})

    def finish(self) -> None:
        self.transition(LoopState.DONE)

    def fail(self, reason: str = "") -> None:
        self.transition(LoopState.FAILED, metadata={"reason": reason})
