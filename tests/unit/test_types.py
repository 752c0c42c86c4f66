"""Tests for message and event types."""

from __future__ import annotations

from relaycode.types.events import EventCategory, EventType, LoopEvent
from relaycode.types.messages import (
    ChatResponse,
    Message,
    Role,
    StopReason,
    StreamFinal,
    ToolCallRequest,
    ToolResult,
    ToolSpec,
)


class TestMessage:
    def test_constructors(self) -> None:
        assert Message.system("s").role == Role.SYSTEM
        assert Message.user("u").role == Role.USER
        assert Message.assistant("a").tool_calls is None
        tool = Message.tool("out", "c1")
        assert tool.role == Role.TOOL
        assert tool.tool_call_id == "c1"

    def test_assistant_wire_includes_calls(self) -> None:
        call = ToolCallRequest(id="c1", name="read", arguments='{"path": "x"}')
        wire = Message.assistant(None, [call]).to_wire()
        assert wire == {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "c1",
                "type": "function",
                "function": {"name": "read", "arguments": '{"path": "x"}'},
            }],
        }

    def test_tool_wire(self) -> None:
        assert Message.tool("result", "c1").to_wire() == {
            "role": "tool",
            "content": "result",
            "tool_call_id": "c1",
        }

    def test_user_wire_has_no_extras(self) -> None:
        assert Message.user("hi").to_wire() == {"role": "user", "content": "hi"}


class TestResults:
    def test_tool_result_error(self) -> None:
        result = ToolResult.error("Boom", "it broke", code=3)
        assert result.is_error
        assert result.metadata == {"code": 3}

    def test_tool_spec_schema(self) -> None:
        spec = ToolSpec(name="read", description="Read", parameters={"type": "object"})
        assert spec.to_schema() == {"name": "read", "description": "Read", "parameters": {"type": "object"}}

    def test_stream_final_to_response(self) -> None:
        final = StreamFinal(content="hi")
        assert final.to_response().stop_reason == StopReason.END_TURN
        with_calls = StreamFinal(tool_calls=[ToolCallRequest(id="c", name="list")])
        response = with_calls.to_response()
        assert response.has_tool_calls
        assert response.stop_reason == StopReason.TOOL_USE

    def test_chat_response_defaults(self) -> None:
        assert not ChatResponse().has_tool_calls


class TestEvents:
    def test_categories(self) -> None:
        assert LoopEvent(type=EventType.TOOL_START).category == EventCategory.TOOL
        assert LoopEvent(type=EventType.LLM_RETRY).category == EventCategory.LLM
        assert LoopEvent(type=EventType.BUDGET_EXHAUSTED).category == EventCategory.BUDGET
        assert LoopEvent(type=EventType.COMPLETE).category == EventCategory.LIFECYCLE
        assert LoopEvent(type=EventType.ITERATION).category == EventCategory.EXECUTION
