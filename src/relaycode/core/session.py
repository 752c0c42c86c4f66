"""Conversation session: the ordered message history for one task."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from relaycode.types.messages import Message, Role


class ConversationSession:
    """Ordered, append-only message history owned by a single loop run.

    ``append`` is the only mutation. Each batch task gets its own session;
    sessions are never shared or merged.
    """

    def __init__(self, messages: Iterable[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or [])

    @classmethod
    def for_task(cls, system_prompt: str, prompt: str) -> ConversationSession:
        """Create a session seeded with the system message and the task prompt."""
        return cls([Message.system(system_prompt), Message.user(prompt)])

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __repr__(self) -> str:
        return f"ConversationSession(messages={len(self._messages)})"


def validate_tool_protocol(messages: Iterable[Message]) -> list[str]:
    """Check tool-call pairing over a message sequence.

    Every call on an assistant message must be answered by exactly one tool
    message, in the same order, before any other message. Returns a list of
    human-readable violations; an empty list means the history is well formed.
    """
    problems: list[str] = []
    pending: list[str] = []

    for index, msg in enumerate(messages):
        if msg.role == Role.TOOL:
            if not pending:
                problems.append(f"message {index}: tool result with no pending call")
                continue
            expected = pending.pop(0)
            if msg.tool_call_id != expected:
                problems.append(
                    f"message {index}: tool result for {msg.tool_call_id!r}, expected {expected!r}"
                )
            if not msg.content:
                problems.append(f"message {index}: empty tool result content")
            continue

        if pending:
            problems.append(
                f"message {index}: {len(pending)} call(s) unanswered before {msg.role} message"
            )
            pending = []

        if msg.role == Role.ASSISTANT and msg.tool_calls:
            pending = [tc.id for tc in msg.tool_calls]
        elif msg.tool_calls:
            problems.append(f"message {index}: tool calls on a {msg.role} message")

    if pending:
        problems.append(f"end of history: {len(pending)} call(s) unanswered")
    return problems
