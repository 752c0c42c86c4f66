"""Tests for tool argument parsing."""

from __future__ import annotations

import pytest

from relaycode.core.arguments import arguments_or_empty, parse_tool_arguments
from relaycode.errors import ToolArgumentsError


class TestParseToolArguments:
    def test_valid_object(self) -> None:
        result = parse_tool_arguments('{"path": "a.txt", "limit": 3}')
        assert result.ok
        assert result.arguments == {"path": "a.txt", "limit": 3}

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_is_empty_object(self, text: str | None) -> None:
        result = parse_tool_arguments(text)
        assert result.ok
        assert result.arguments == {}

    def test_invalid_json(self) -> None:
        result = parse_tool_arguments('{"path": ')
        assert not result.ok
        assert isinstance(result.error, ToolArgumentsError)
        assert result.error.raw == '{"path": '
        assert result.arguments == {}

    @pytest.mark.parametrize("text", ["[1, 2]", '"a string"', "42", "null"])
    def test_non_object_rejected(self, text: str) -> None:
        result = parse_tool_arguments(text)
        assert not result.ok
        assert "JSON object" in str(result.error)


class TestArgumentsOrEmpty:
    def test_passes_valid_arguments_through(self) -> None:
        assert arguments_or_empty('{"a": 1}') == {"a": 1}

    def test_invalid_falls_back_to_empty(self) -> None:
        assert arguments_or_empty("not json at all", tool_name="read") == {}

    def test_non_object_falls_back_to_empty(self) -> None:
        assert arguments_or_empty("[1]") == {}
