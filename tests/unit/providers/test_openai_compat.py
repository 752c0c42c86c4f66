"""Tests for the OpenAI-compatible completion client."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from relaycode.errors import LLMError, ProviderError
from relaycode.providers.openai_compat import (
    OpenAICompatClient,
    _describe_request_error,
    adapt_chat_stream,
)
from relaycode.types.messages import (
    ChatOptions,
    Message,
    StopReason,
    StreamFinal,
    StreamFragment,
    ToolCallRequest,
    ToolSpec,
)


def _make_client(handler: Any, **kwargs: Any) -> OpenAICompatClient:
    return OpenAICompatClient(
        api_url="http://test.local/",
        model="llama3.2",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _sse(*chunks: dict[str, Any]) -> bytes:
    lines = [f"data: {json.dumps(c)}\n\n" for c in chunks]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


async def _lines(*lines: str) -> AsyncIterator[str]:
    for line in lines:
        yield line


class TestComplete:
    @pytest.mark.asyncio
    async def test_text_response(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "llama3.2",
                "choices": [{"message": {"role": "assistant", "content": "hi"}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
            })

        client = _make_client(handler)
        resp = await client.complete([Message.user("hello")], ChatOptions(max_tokens=10, temperature=0.5))
        await client.close()

        assert seen["url"] == "http://test.local/v1/chat/completions"
        assert seen["body"]["stream"] is False
        assert seen["body"]["max_tokens"] == 10
        assert seen["body"]["temperature"] == 0.5
        assert seen["body"]["messages"] == [{"role": "user", "content": "hello"}]
        assert resp.content == "hi"
        assert resp.stop_reason == StopReason.END_TURN
        assert resp.usage is not None and resp.usage.total_tokens == 4

    @pytest.mark.asyncio
    async def test_tools_sent_and_calls_parsed(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "choices": [{
                    "message": {
                        "content": None,
                        "tool_calls": [{
                            "id": "call_1",
                            "type": "function",
                            "function": {"name": "read", "arguments": '{"path": "a.txt"}'},
                        }],
                    },
                    "finish_reason": "tool_calls",
                }],
            })

        spec = ToolSpec(name="read", description="Read a file", parameters={"type": "object"})
        client = _make_client(handler)
        resp = await client.complete([Message.user("x")], ChatOptions(tools=[spec]))

        assert seen["body"]["tools"] == [{
            "type": "function",
            "function": {"name": "read", "description": "Read a file", "parameters": {"type": "object"}},
        }]
        assert resp.tool_calls == [ToolCallRequest(id="call_1", name="read", arguments='{"path": "a.txt"}')]
        assert resp.stop_reason == StopReason.TOOL_USE

    @pytest.mark.asyncio
    async def test_auth_header(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization", "")
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        client = _make_client(handler, api_key="sk-test")
        await client.complete([Message.user("x")])
        assert seen["auth"] == "Bearer sk-test"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("status", "retryable"), [(429, True), (503, True), (400, False), (401, False)])
    async def test_status_errors(self, status: int, retryable: bool) -> None:
        client = _make_client(lambda request: httpx.Response(status, text="nope"))
        with pytest.raises(ProviderError) as exc_info:
            await client.complete([Message.user("x")])
        assert exc_info.value.status_code == status
        assert exc_info.value.retryable is retryable
        assert "nope" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error_is_retryable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)
        with pytest.raises(ProviderError, match="connection refused") as exc_info:
            await client.complete([Message.user("x")])
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_no_choices(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(LLMError, match="no choices"):
            await client.complete([Message.user("x")])


class TestStream:
    @pytest.mark.asyncio
    async def test_text_fragments_then_final(self) -> None:
        body = _sse(
            {"choices": [{"delta": {"content": "Hel"}}]},
            {"choices": [{"delta": {"content": "lo"}}]},
            {"choices": [], "usage": {"prompt_tokens": 2, "completion_tokens": 2, "total_tokens": 4}},
        )
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

        client = _make_client(handler)
        events = [e async for e in client.stream([Message.user("x")])]

        assert seen["body"]["stream"] is True
        assert [e.text for e in events if isinstance(e, StreamFragment)] == ["Hel", "lo"]
        final = events[-1]
        assert isinstance(final, StreamFinal)
        assert final.content == "Hello"
        assert final.usage is not None and final.usage.total_tokens == 4

    @pytest.mark.asyncio
    async def test_status_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(ProviderError) as exc_info:
            async for _ in client.stream([Message.user("x")]):
                pass
        assert exc_info.value.status_code == 502
        assert exc_info.value.retryable


class TestAdaptChatStream:
    @pytest.mark.asyncio
    async def test_tool_call_deltas_assembled_by_index(self) -> None:
        chunks = [
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "id": "c1", "function": {"name": "read", "arguments": '{"pa'}},
            ]}}]},
            {"choices": [{"delta": {"tool_calls": [
                {"index": 1, "id": "c2", "function": {"name": "list", "arguments": "{}"}},
            ]}}]},
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "function": {"arguments": 'th": "a"}'}},
            ]}}]},
        ]
        lines = [f"data: {json.dumps(c)}" for c in chunks] + ["data: [DONE]"]
        events = [e async for e in adapt_chat_stream(_lines(*lines))]

        assert len(events) == 1
        final = events[0]
        assert isinstance(final, StreamFinal)
        assert final.content is None
        assert final.tool_calls == [
            ToolCallRequest(id="c1", name="read", arguments='{"path": "a"}'),
            ToolCallRequest(id="c2", name="list", arguments="{}"),
        ]

    @pytest.mark.asyncio
    async def test_index_less_deltas_follow_ids(self) -> None:
        chunks = [
            {"choices": [{"delta": {"tool_calls": [
                {"id": "c1", "function": {"name": "read", "arguments": '{"pa'}},
            ]}}]},
            {"choices": [{"delta": {"tool_calls": [
                {"function": {"arguments": 'th": "a"}'}},
            ]}}]},
            {"choices": [{"delta": {"tool_calls": [
                {"id": "c2", "function": {"name": "list", "arguments": "{}"}},
            ]}}]},
        ]
        lines = [f"data: {json.dumps(c)}" for c in chunks] + ["data: [DONE]"]
        events = [e async for e in adapt_chat_stream(_lines(*lines))]

        assert events[-1].tool_calls == [
            ToolCallRequest(id="c1", name="read", arguments='{"path": "a"}'),
            ToolCallRequest(id="c2", name="list", arguments="{}"),
        ]

    @pytest.mark.asyncio
    async def test_malformed_arguments_passed_through(self) -> None:
        chunk = {"choices": [{"delta": {"tool_calls": [
            {"index": 0, "id": "c1", "function": {"name": "read", "arguments": "{not json"}},
        ]}}]}
        events = [e async for e in adapt_chat_stream(_lines(f"data: {json.dumps(chunk)}"))]
        assert events[-1].tool_calls[0].arguments == "{not json"

    @pytest.mark.asyncio
    async def test_ignores_comments_and_garbage(self) -> None:
        events = [
            e async for e in adapt_chat_stream(_lines(
                ": keepalive",
                "data: {broken",
                'data: {"choices": [{"delta": {"content": "ok"}}]}',
            ))
        ]
        assert [type(e) for e in events] == [StreamFragment, StreamFinal]
        assert events[-1].content == "ok"


def test_describe_request_error_falls_back_to_type_name() -> None:
    err = httpx.ReadTimeout("")
    assert _describe_request_error(err) == "ReadTimeout"
