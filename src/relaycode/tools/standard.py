"""Standard tool registry creation."""

from __future__ import annotations

from relaycode.tools.base import ToolKind
from relaycode.tools.bash import create_bash_tool
from relaycode.tools.file_ops import create_file_tools
from relaycode.tools.git import create_git_tool
from relaycode.tools.permission import PermissionChecker
from relaycode.tools.registry import ToolRegistry
from relaycode.tools.search import create_search_tools

# Offered to a batch task when it does not name its own tools.
DEFAULT_TOOL_IDS: tuple[str, ...] = (
    ToolKind.READ.value,
    ToolKind.WRITE.value,
    ToolKind.EDIT.value,
    ToolKind.BASH.value,
    ToolKind.GREP.value,
    ToolKind.GLOB.value,
    ToolKind.LIST.value,
)

# Streaming runs also get git.
STREAMING_TOOL_IDS: tuple[str, ...] = (*DEFAULT_TOOL_IDS, ToolKind.GIT.value)


def create_standard_registry(
    *,
    permission_checker: PermissionChecker | None = None,
    tool_timeout: float = 120.0,
) -> ToolRegistry:
    """Create a registry holding every built-in tool."""
    registry = ToolRegistry(permission_checker=permission_checker, default_timeout=tool_timeout)
    for tool in create_file_tools():
        registry.register(tool)
    registry.register(create_bash_tool())
    for tool in create_search_tools():
        registry.register(tool)
    registry.register(create_git_tool())
    return registry
