"""Permission checking for tool execution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from relaycode.tools.base import ToolKind
from relaycode.tools.git import MUTATING_SUBCOMMANDS


class PermissionDecision(StrEnum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(slots=True)
class PermissionResult:
    """Result of a permission check."""

    decision: PermissionDecision
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.decision == PermissionDecision.ALLOW

    @staticmethod
    def allow(reason: str | None = None) -> PermissionResult:
        return PermissionResult(decision=PermissionDecision.ALLOW, reason=reason)

    @staticmethod
    def deny(reason: str) -> PermissionResult:
        return PermissionResult(decision=PermissionDecision.DENY, reason=reason)


@runtime_checkable
class PermissionChecker(Protocol):
    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult: ...


class AllowAllPermissions:
    """Permission checker that allows everything."""

    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult:
        return PermissionResult.allow()


class ConfigPermissions:
    """Permission checker driven by the write/bash switches in the config.

    Read-only tools are always allowed, as are read-only git subcommands.
    Tools outside the built-in set are not gated.
    """

    def __init__(self, *, allow_file_write: bool = False, allow_bash: bool = False) -> None:
        self._flags: dict[str, tuple[bool, str]] = {
            ToolKind.WRITE: (allow_file_write, "--allow-file-write"),
            ToolKind.EDIT: (allow_file_write, "--allow-file-write"),
            ToolKind.BASH: (allow_bash, "--allow-bash"),
        }
        self._git_write = (allow_file_write, "--allow-file-write")

    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult:
        flag = self._flags.get(tool_name)
        if tool_name == ToolKind.GIT and args.get("subcommand") in MUTATING_SUBCOMMANDS:
            flag = self._git_write
        if flag is None or flag[0]:
            return PermissionResult.allow()
        return PermissionResult.deny(
            f'Tool "{tool_name}" is not allowed by current permissions. Use {flag[1]} to enable it.'
        )
