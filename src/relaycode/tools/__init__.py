"""Tool registry and the built-in tool set."""

from relaycode.tools.base import Tool, ToolContext, ToolKind, ToolParam
from relaycode.tools.permission import (
    AllowAllPermissions,
    ConfigPermissions,
    PermissionChecker,
    PermissionResult,
)
from relaycode.tools.registry import ToolRegistry, truncate_output
from relaycode.tools.standard import DEFAULT_TOOL_IDS, STREAMING_TOOL_IDS, create_standard_registry

__all__ = [
    "AllowAllPermissions",
    "ConfigPermissions",
    "DEFAULT_TOOL_IDS",
    "PermissionChecker",
    "PermissionResult",
    "STREAMING_TOOL_IDS",
    "Tool",
    "ToolContext",
    "ToolKind",
    "ToolParam",
    "ToolRegistry",
    "create_standard_registry",
    "truncate_output",
]
