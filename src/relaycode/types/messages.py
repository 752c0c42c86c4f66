"""Core message types for completion-endpoint communication."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class StopReason(StrEnum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """A tool invocation requested by the model.

    ``arguments`` is the raw text sent by the endpoint. It is expected to be
    JSON but is never trusted; see :mod:`relaycode.core.arguments`.
    """

    id: str
    name: str
    arguments: str = ""

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(slots=True)
class ToolResult:
    """Displayable outcome of a tool execution."""

    output: str
    title: str
    is_error: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def error(title: str, output: str, **metadata: Any) -> ToolResult:
        return ToolResult(output=output, title=title, is_error=True, metadata=metadata)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Schema handed to the completion endpoint for one callable tool."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass(slots=True)
class TokenUsage:
    """Token consumption metrics."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(slots=True)
class Message:
    """A conversation message.

    Only assistant messages carry ``tool_calls``; only tool messages carry
    ``tool_call_id``.
    """

    role: Role
    content: str | None = None
    tool_calls: list[ToolCallRequest] | None = None
    tool_call_id: str | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @staticmethod
    def system(content: str) -> Message:
        return Message(role=Role.SYSTEM, content=content)

    @staticmethod
    def user(content: str) -> Message:
        return Message(role=Role.USER, content=content)

    @staticmethod
    def assistant(content: str | None, tool_calls: list[ToolCallRequest] | None = None) -> Message:
        return Message(role=Role.ASSISTANT, content=content, tool_calls=tool_calls or None)

    @staticmethod
    def tool(content: str, tool_call_id: str) -> Message:
        return Message(role=Role.TOOL, content=content, tool_call_id=tool_call_id)

    def to_wire(self) -> dict[str, Any]:
        """Convert to the chat-completions message shape."""
        data: dict[str, Any] = {"role": str(self.role), "content": self.content}
        if self.role == Role.ASSISTANT and self.tool_calls:
            data["tool_calls"] = [tc.to_wire() for tc in self.tool_calls]
        if self.role == Role.TOOL:
            data["tool_call_id"] = self.tool_call_id or ""
        return data


@dataclass(slots=True)
class ChatOptions:
    """Options for a completion request."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    tools: list[ToolSpec] | None = None


@dataclass(slots=True)
class ChatResponse:
    """Aggregate outcome of one completion round trip."""

    content: str | None = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    stop_reason: StopReason | None = None
    usage: TokenUsage | None = None
    model: str | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# Streaming channel: zero or more fragments, then exactly one final value.


@dataclass(frozen=True, slots=True)
class StreamFragment:
    """One incremental piece of model-generated text."""

    text: str


@dataclass(slots=True)
class StreamFinal:
    """Terminal value of a stream: the round's aggregate content and tool calls."""

    content: str | None = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    usage: TokenUsage | None = None

    def to_response(self) -> ChatResponse:
        return ChatResponse(
            content=self.content,
            tool_calls=list(self.tool_calls),
            stop_reason=StopReason.TOOL_USE if self.tool_calls else StopReason.END_TURN,
            usage=self.usage,
        )


StreamEvent = StreamFragment | StreamFinal
