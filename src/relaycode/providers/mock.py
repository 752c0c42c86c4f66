"""Scripted completion client for testing."""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from relaycode.types.messages import (
    ChatOptions,
    ChatResponse,
    Message,
    StopReason,
    StreamEvent,
    StreamFinal,
    StreamFragment,
    TokenUsage,
    ToolCallRequest,
)

ResponseFn = Callable[[list[Message], ChatOptions | None], Awaitable[ChatResponse]]


@dataclass
class MockClient:
    """Completion client that replays queued responses.

    Scripted responses are returned in order; once they run out the
    ``default_response`` is returned. Every call records a snapshot of the
    messages it was given in ``call_history``.
    """

    responses: list[ChatResponse | Exception] = field(default_factory=list)
    response_fn: ResponseFn | None = None
    default_response: ChatResponse = field(
        default_factory=lambda: ChatResponse(
            content="Mock response",
            stop_reason=StopReason.END_TURN,
            usage=TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
        )
    )
    chunk_size: int = 4
    call_history: list[tuple[list[Message], ChatOptions | None]] = field(default_factory=list)
    _response_index: int = field(default=0, init=False)

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_count(self) -> int:
        return len(self.call_history)

    async def complete(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        snapshot = [copy.copy(m) for m in messages]
        self.call_history.append((snapshot, options))
        if self.response_fn is not None:
            return await self.response_fn(snapshot, options)
        if self._response_index < len(self.responses):
            resp = self.responses[self._response_index]
            self._response_index += 1
            if isinstance(resp, Exception):
                raise resp
            return resp
        return self.default_response

    async def stream(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[StreamEvent]:
        resp = await self.complete(messages, options)
        text = resp.content or ""
        for i in range(0, len(text), self.chunk_size):
            yield StreamFragment(text[i : i + self.chunk_size])
        yield StreamFinal(content=resp.content, tool_calls=list(resp.tool_calls), usage=resp.usage)

    def add_response(
        self,
        content: str | None = "",
        tool_calls: list[ToolCallRequest] | None = None,
        stop_reason: StopReason = StopReason.END_TURN,
        usage: TokenUsage | None = None,
    ) -> MockClient:
        self.responses.append(
            ChatResponse(
                content=content,
                tool_calls=tool_calls or [],
                stop_reason=stop_reason,
                usage=usage or TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
            )
        )
        return self

    def add_tool_response(self, tool_calls: list[ToolCallRequest], content: str | None = None) -> MockClient:
        return self.add_response(content=content, tool_calls=tool_calls, stop_reason=StopReason.TOOL_USE)

    def add_error(self, error: Exception) -> MockClient:
        self.responses.append(error)
        return self

    def reset(self) -> None:
        self.call_history.clear()
        self._response_index = 0

    async def close(self) -> None:
        """No-op for the mock client."""
