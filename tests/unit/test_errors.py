"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

from relaycode.errors import (
    BatchFileError,
    CancellationError,
    ConfigurationError,
    ErrorCategory,
    IterationBudgetExceededError,
    LLMError,
    ProviderError,
    RelayError,
    ToolArgumentsError,
    ToolError,
    ToolTimeoutError,
)


class TestRelayError:
    def test_basic(self) -> None:
        err = RelayError("oops")
        assert str(err) == "oops"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.details == {}

    def test_repr(self) -> None:
        assert "RelayError('oops'" in repr(RelayError("oops"))


class TestProviderError:
    def test_retryable_by_default(self) -> None:
        err = ProviderError("down", provider="openai-compat", status_code=503)
        assert err.retryable
        assert err.status_code == 503
        assert err.category == ErrorCategory.PROVIDER

    def test_non_retryable(self) -> None:
        assert not ProviderError("bad request", retryable=False).retryable


class TestToolErrors:
    def test_tool_error(self) -> None:
        err = ToolError("broken", tool_name="edit")
        assert err.tool_name == "edit"
        assert err.category == ErrorCategory.TOOL
        assert not err.retryable

    def test_timeout(self) -> None:
        err = ToolTimeoutError("bash", 5.0)
        assert err.timeout == 5.0
        assert err.retryable
        assert "timed out after 5.0s" in str(err)

    def test_arguments(self) -> None:
        err = ToolArgumentsError("bad", raw="{x")
        assert err.raw == "{x"
        assert err.category == ErrorCategory.TOOL


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (LLMError("x"), ErrorCategory.LLM),
        (IterationBudgetExceededError(20), ErrorCategory.BUDGET),
        (CancellationError(), ErrorCategory.CANCELLATION),
        (BatchFileError("bad"), ErrorCategory.INPUT),
        (ConfigurationError("bad"), ErrorCategory.CONFIGURATION),
    ],
)
def test_categories(error: RelayError, category: ErrorCategory) -> None:
    assert error.category == category
    assert isinstance(error, RelayError)


def test_budget_message() -> None:
    err = IterationBudgetExceededError(20)
    assert err.max_iterations == 20
    assert "20" in str(err)
