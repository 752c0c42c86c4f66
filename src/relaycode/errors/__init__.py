"""Relaycode error hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of error for classification and handling."""

    LLM = "llm"
    PROVIDER = "provider"
    TOOL = "tool"
    BUDGET = "budget"
    CANCELLATION = "cancellation"
    CONFIGURATION = "configuration"
    INPUT = "input"
    INTERNAL = "internal"


class RelayError(Exception):
    """Base error for all relaycode exceptions."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.details: dict[str, Any] = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, category={self.category!r})"


class LLMError(RelayError):
    """Error from the model interaction (protocol violation, malformed response)."""

    def __init__(self, message: str, *, retryable: bool = False, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.LLM, retryable=retryable, **kwargs)


class ProviderError(RelayError):
    """Transport-level failure or non-success status from the completion endpoint."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, category=ErrorCategory.PROVIDER, retryable=retryable, **kwargs)
        self.provider = provider
        self.status_code = status_code


class ToolArgumentsError(RelayError):
    """Tool call arguments text could not be parsed into a mapping."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message, category=ErrorCategory.TOOL, retryable=False)
        self.raw = raw


class ToolError(RelayError):
    """Error during tool execution."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        retryable: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, category=ErrorCategory.TOOL, retryable=retryable, **kwargs)
        self.tool_name = tool_name


class ToolTimeoutError(ToolError):
    """Tool execution timed out."""

    def __init__(self, tool_name: str, timeout: float) -> None:
        super().__init__(
            f"Tool '{tool_name}' timed out after {timeout}s",
            tool_name=tool_name,
            retryable=True,
        )
        self.timeout = timeout


class IterationBudgetExceededError(RelayError):
    """The loop used its whole round-trip budget without finishing."""

    def __init__(self, max_iterations: int) -> None:
        super().__init__(
            f"Reached iteration limit ({max_iterations}) without a final answer",
            category=ErrorCategory.BUDGET,
            retryable=False,
        )
        self.max_iterations = max_iterations


class CancellationError(RelayError):
    """Operation was cancelled by user or system."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, category=ErrorCategory.CANCELLATION, retryable=False)


class BatchFileError(RelayError):
    """Batch input is not a valid task list."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message, category=ErrorCategory.INPUT, retryable=False)
        self.path = path


class ConfigurationError(RelayError):
    """Invalid or missing configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.CONFIGURATION, retryable=False)
