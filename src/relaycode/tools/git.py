"""Git tool: structured wrappers around common git subcommands."""

from __future__ import annotations

import asyncio
import shlex
from typing import Literal

from pydantic import Field

from relaycode.tools.base import Tool, ToolContext, ToolKind, ToolParam
from relaycode.tools.bash import _kill_process
from relaycode.types.messages import ToolResult

GIT_TIMEOUT = 30.0

GitSubcommand = Literal["status", "diff", "log", "commit", "branch", "add", "checkout", "stash", "show"]

# Subcommands that change the working tree, index or history
MUTATING_SUBCOMMANDS = frozenset({"commit", "add", "checkout", "stash"})


class GitParams(ToolParam):
    subcommand: GitSubcommand = Field(description="The git operation to perform")
    args: str | None = Field(
        default=None,
        description="Additional arguments (e.g. file paths, branch name, commit message)",
    )
    message: str | None = Field(default=None, description="Commit message (for commit subcommand)")


def build_git_args(params: GitParams) -> list[str] | ToolResult:
    """Translate params into a git argv, or an error result when required input is missing."""
    extra = shlex.split(params.args) if params.args else []

    match params.subcommand:
        case "status":
            return ["status", "--short", "--branch"]
        case "diff":
            return ["diff", *(extra or ["--stat"])]
        case "log":
            return ["log", "--oneline", "--graph", "--decorate", "-20", *extra]
        case "commit":
            message = params.message or params.args
            if not message:
                return ToolResult.error(
                    "git commit: missing message",
                    "Commit requires a message. Use the 'message' parameter.",
                )
            return ["commit", "-m", message]
        case "branch":
            return ["branch", *(extra or ["-a", "--sort=-committerdate"])]
        case "add":
            if not extra:
                return ToolResult.error(
                    "git add: missing files",
                    "Specify files to add. Use args='.' to add all, or specific paths.",
                )
            return ["add", *extra]
        case "checkout":
            if not extra:
                return ToolResult.error("git checkout: missing target", "Specify a branch name or file path.")
            return ["checkout", *extra]
        case "stash":
            return ["stash", *extra]
        case "show":
            return ["show", "--stat", *extra]


async def run_git(params: GitParams, ctx: ToolContext) -> ToolResult:
    argv = build_git_args(params)
    if isinstance(argv, ToolResult):
        return argv

    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL,
            cwd=str(ctx.project_root),
        )
    except OSError as e:
        return ToolResult.error(f"git {params.subcommand} (failed)", f"Error running git: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=GIT_TIMEOUT)
    except asyncio.TimeoutError:
        await _kill_process(proc)
        return ToolResult.error(
            f"git {params.subcommand} (failed)", f"git timed out after {GIT_TIMEOUT:.0f}s"
        )
    except asyncio.CancelledError:
        await _kill_process(proc)
        raise

    output = (stdout.decode("utf-8", errors="replace") + stderr.decode("utf-8", errors="replace")).strip()
    failed = proc.returncode != 0
    return ToolResult(
        output=output or "(no output)",
        title=f"git {params.subcommand}{' (failed)' if failed else ''}",
        is_error=failed,
        metadata={"subcommand": params.subcommand, "exit_code": proc.returncode},
    )


def create_git_tool() -> Tool:
    return Tool(
        name=ToolKind.GIT.value,
        description=(
            "Run git operations: status, diff, log, commit, branch, add, checkout, stash, show. "
            "Use subcommand to specify the operation."
        ),
        params=GitParams,
        execute=run_git,
    )
