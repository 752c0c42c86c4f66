"""OpenAI-compatible chat-completions client using httpx."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from relaycode.errors import LLMError, ProviderError
from relaycode.logger import get_logger
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
    ToolSpec,
)

logger = get_logger(__name__)

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_MODEL = "llama3.2"
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def _describe_request_error(e: httpx.RequestError) -> str:
    """Build a descriptive error message for httpx request errors.

    httpx.ReadTimeout and similar errors often have an empty str(e),
    so fall back to the exception type name and the chained cause.
    """
    msg = str(e)
    if not msg:
        msg = type(e).__name__
    if e.__cause__ and str(e.__cause__):
        msg = f"{msg} (caused by {type(e.__cause__).__name__}: {e.__cause__})"
    return msg


def _parse_usage(data: dict[str, Any] | None) -> TokenUsage | None:
    if not data:
        return None
    return TokenUsage(
        input_tokens=data.get("prompt_tokens", 0),
        output_tokens=data.get("completion_tokens", 0),
        total_tokens=data.get("total_tokens", 0),
    )


def _stop_reason(finish: str | None, has_tool_calls: bool) -> StopReason:
    if finish == "tool_calls" or has_tool_calls:
        return StopReason.TOOL_USE
    if finish == "length":
        return StopReason.MAX_TOKENS
    return StopReason.END_TURN


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)


async def adapt_chat_stream(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    """Convert chat-completions SSE lines into the fragment/final channel.

    Tool-call deltas are assembled by ``index``; argument text is
    concatenated as received and never parsed here. Exactly one
    :class:`StreamFinal` is yielded, after the last fragment.
    """
    content: list[str] = []
    pending: dict[int, _PendingToolCall] = {}
    usage: TokenUsage | None = None

    async for line in lines:
        if not line.startswith("data:"):
            continue
        data = line[5:].strip()
        if data == "[DONE]":
            break
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("sse_unparseable_line", line=data[:200])
            continue

        usage = _parse_usage(parsed.get("usage")) or usage
        choices = parsed.get("choices") or []
        if not choices:
            continue
        delta = choices[0].get("delta") or {}

        if text := delta.get("content"):
            content.append(text)
            yield StreamFragment(text)

        for tc in delta.get("tool_calls") or []:
            index = tc.get("index")
            if index is None:
                # Index-less deltas continue the last call unless they carry a new id
                last = max(pending, default=-1)
                call_id = tc.get("id")
                if last >= 0 and (not call_id or pending[last].id == call_id):
                    index = last
                else:
                    index = last + 1
            slot = pending.setdefault(index, _PendingToolCall())
            if tc.get("id"):
                slot.id = tc["id"]
            fn = tc.get("function") or {}
            if fn.get("name"):
                slot.name = fn["name"]
            if fn.get("arguments"):
                slot.arguments.append(fn["arguments"])

    tool_calls = [
        ToolCallRequest(id=slot.id, name=slot.name, arguments="".join(slot.arguments))
        for _, slot in sorted(pending.items())
    ]
    yield StreamFinal(content="".join(content) or None, tool_calls=tool_calls, usage=usage)


class OpenAICompatClient:
    """Client for any endpoint speaking the chat-completions wire format."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client = self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
            transport=self._transport,
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the client, recreating it if closed."""
        if self._client.is_closed:
            self._client = self._create_client()
        return self._client

    @property
    def name(self) -> str:
        return "openai-compat"

    @property
    def endpoint(self) -> str:
        return f"{self._api_url}/v1/chat/completions"

    def _build_body(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None,
        *,
        stream: bool,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": (options and options.model) or self._model,
            "messages": [msg.to_wire() for msg in messages],
            "stream": stream,
        }
        if options and options.max_tokens:
            body["max_tokens"] = options.max_tokens
        if options and options.temperature is not None:
            body["temperature"] = options.temperature
        if options and options.tools:
            body["tools"] = [self._format_tool(t) for t in options.tools]
        return body

    def _format_tool(self, tool: ToolSpec) -> dict[str, Any]:
        return {"type": "function", "function": tool.to_schema()}

    def _status_error(self, response: httpx.Response) -> ProviderError:
        status = response.status_code
        return ProviderError(
            f"Completion endpoint error {status}: {response.text[:500]}",
            provider=self.name,
            status_code=status,
            retryable=status in RETRYABLE_STATUS,
        )

    async def complete(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        client = self._ensure_client()
        body = self._build_body(messages, options, stream=False)
        try:
            response = await client.post(self.endpoint, json=body)
        except httpx.RequestError as e:
            raise ProviderError(
                f"Request error: {_describe_request_error(e)}",
                provider=self.name,
                retryable=True,
            ) from e
        if response.is_error:
            raise self._status_error(response)
        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"Completion endpoint returned invalid JSON: {e}") from e
        return self._parse_response(data, body["model"])

    async def stream(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[StreamEvent]:
        client = self._ensure_client()
        body = self._build_body(messages, options, stream=True)
        body["stream_options"] = {"include_usage": True}
        try:
            async with client.stream("POST", self.endpoint, json=body) as response:
                if response.is_error:
                    await response.aread()
                    raise self._status_error(response)
                async for event in adapt_chat_stream(response.aiter_lines()):
                    yield event
        except httpx.RequestError as e:
            raise ProviderError(
                f"Request error: {_describe_request_error(e)}",
                provider=self.name,
                retryable=True,
            ) from e
        except httpx.StreamError as e:
            raise ProviderError(
                f"Stream error: {type(e).__name__}: {e}",
                provider=self.name,
                retryable=True,
            ) from e

    def _parse_response(self, data: dict[str, Any], model: str) -> ChatResponse:
        choices = data.get("choices") or []
        if not choices:
            raise LLMError("Completion endpoint returned no choices")
        choice = choices[0]
        message = choice.get("message") or {}

        tool_calls: list[ToolCallRequest] = []
        for tc in message.get("tool_calls") or []:
            fn = tc.get("function") or {}
            arguments = fn.get("arguments", "")
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            tool_calls.append(ToolCallRequest(id=tc.get("id", ""), name=fn.get("name", ""), arguments=arguments))

        return ChatResponse(
            content=message.get("content"),
            tool_calls=tool_calls,
            stop_reason=_stop_reason(choice.get("finish_reason"), bool(tool_calls)),
            usage=_parse_usage(data.get("usage")),
            model=data.get("model") or model,
        )

    async def close(self) -> None:
        await self._client.aclose()
