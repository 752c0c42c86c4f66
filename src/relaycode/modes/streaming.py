"""Streaming mode: one prompt from stdin, model output written as it arrives."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import TextIO

import click

from relaycode.core.context import LoopConfig, LoopContext
from relaycode.core.loop import LoopResult, run_orchestration_loop
from relaycode.core.session import ConversationSession
from relaycode.errors import ConfigurationError
from relaycode.providers.base import CompletionClient
from relaycode.tools.registry import ToolRegistry
from relaycode.tools.standard import STREAMING_TOOL_IDS
from relaycode.types.events import EventType, LoopEvent

USAGE_HINT = "No input provided. Pipe text to this command:\n  echo 'your prompt' | relaycode stream"


def read_prompt(stream: TextIO) -> str:
    """Read the whole input stream as the task prompt."""
    prompt = stream.read().strip()
    if not prompt:
        raise ConfigurationError(USAGE_HINT)
    return prompt


def _echo_tool_progress(event: LoopEvent) -> None:
    if event.type in (EventType.TOOL_COMPLETE, EventType.TOOL_ERROR):
        click.echo(f"> {event.tool}: {event.title}", err=True)


async def run_streaming(
    prompt: str,
    *,
    client: CompletionClient,
    registry: ToolRegistry,
    system_prompt: str,
    project_root: Path,
    loop_config: LoopConfig | None = None,
    tool_ids: Sequence[str] = STREAMING_TOOL_IDS,
) -> LoopResult:
    """Run a single task, streaming fragments to stdout.

    Tool progress goes to stderr. Falls back to buffered completions when
    the client cannot stream.
    """
    config = replace(loop_config or LoopConfig(), streaming=True)
    written: list[str] = []

    def _write_fragment(text: str) -> None:
        written.append(text)
        click.echo(text, nl=False)

    ctx = LoopContext(
        client=client,
        registry=registry,
        session=ConversationSession.for_task(system_prompt, prompt),
        config=config,
        tool_ids=tool_ids,
        project_root=project_root,
        on_fragment=_write_fragment,
    )
    ctx.on_event(_echo_tool_progress)

    result = await run_orchestration_loop(ctx)

    if result.success and not written and result.response:
        click.echo(result.response, nl=False)
    click.echo()
    if not result.success:
        click.echo(f"Error: {result.message}", err=True)
    return result
