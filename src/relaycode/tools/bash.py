"""Bash execution tool.

- TERM=dumb and a sanitized environment for the child process
- SIGTERM then SIGKILL on timeout (3s grace period)
- 100KB output cap before registry truncation
"""

from __future__ import annotations

import asyncio
import os

from pydantic import Field

from relaycode.tools.base import Tool, ToolContext, ToolKind, ToolParam
from relaycode.types.messages import ToolResult

DEFAULT_TIMEOUT = 120.0
MAX_OUTPUT = 100_000
SIGTERM_GRACE_SECONDS = 3.0

# Environment variables to strip from child processes
SENSITIVE_ENV_VARS = frozenset({
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "NPM_TOKEN",
    "PYPI_TOKEN",
    "DATABASE_URL",
    "DB_PASSWORD",
    "RELAYCODE_API_KEY",
})


class BashParams(ToolParam):
    command: str = Field(description="The bash command to execute")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Timeout in seconds")
    description: str | None = Field(default=None, description="Short label for progress output")


def _sanitize_env() -> dict[str, str]:
    env = dict(os.environ)
    env["TERM"] = "dumb"
    for var in SENSITIVE_ENV_VARS:
        env.pop(var, None)
    return env


async def _kill_process(proc: asyncio.subprocess.Process) -> None:
    """Kill a process with a SIGTERM then SIGKILL chain."""
    try:
        proc.terminate()
    except ProcessLookupError:
        return

    try:
        await asyncio.wait_for(proc.wait(), timeout=SIGTERM_GRACE_SECONDS)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()


async def execute_bash(params: BashParams, ctx: ToolContext) -> ToolResult:
    title = params.description or f"bash: {params.command[:60]}"
    cwd = ctx.project_root
    if not cwd.is_dir():
        return ToolResult.error(
            f"bash error: {params.command[:60]}", f"Working directory does not exist: {cwd}"
        )

    try:
        proc = await asyncio.create_subprocess_shell(
            params.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
            env=_sanitize_env(),
        )
    except OSError as e:
        return ToolResult.error(f"bash error: {params.command[:60]}", f"Error executing command: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=params.timeout)
    except asyncio.TimeoutError:
        await _kill_process(proc)
        return ToolResult.error(title, f"Command timed out after {params.timeout:.0f}s")
    except asyncio.CancelledError:
        await _kill_process(proc)
        raise

    parts: list[str] = []
    if stdout:
        parts.append(stdout.decode("utf-8", errors="replace"))
    if stderr:
        parts.append(f"STDERR:\n{stderr.decode('utf-8', errors='replace')}")
    output = "\n".join(parts)

    if len(output) > MAX_OUTPUT:
        total_len = len(output)
        output = output[:MAX_OUTPUT] + f"\n... (truncated, {total_len:,} total chars)"

    if proc.returncode != 0:
        output = f"Exit code: {proc.returncode}\n{output}"

    return ToolResult(
        output=output.strip(),
        title=title,
        is_error=proc.returncode != 0,
        metadata={"exit_code": proc.returncode},
    )


def create_bash_tool() -> Tool:
    return Tool(
        name=ToolKind.BASH.value,
        description="Execute a bash command in the project root.",
        params=BashParams,
        execute=execute_bash,
    )
