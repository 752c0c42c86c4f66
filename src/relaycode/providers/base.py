"""Completion client protocols.

A client performs the network call to the model, either buffered
(:meth:`CompletionClient.complete`) or streaming
(:meth:`StreamingCompletionClient.stream`).
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from relaycode.types.messages import ChatOptions, ChatResponse, Message, StreamEvent


@runtime_checkable
class CompletionClient(Protocol):
    """Protocol for buffered completion clients."""

    @property
    def name(self) -> str: ...

    async def complete(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse: ...

    async def close(self) -> None:
        """Release resources (e.g. HTTP client connections)."""
        ...


@runtime_checkable
class StreamingCompletionClient(CompletionClient, Protocol):
    """Client that can also stream a completion.

    ``stream`` yields zero or more :class:`StreamFragment` values followed
    by exactly one :class:`StreamFinal`.
    """

    def stream(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[StreamEvent]: ...
