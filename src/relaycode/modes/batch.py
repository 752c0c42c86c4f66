"""Batch mode: run a file of independent tasks one after another."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import click
from pydantic import BaseModel, ValidationError

from relaycode.core.context import LoopConfig, LoopContext
from relaycode.core.loop import LoopResult, run_orchestration_loop
from relaycode.core.session import ConversationSession
from relaycode.errors import BatchFileError
from relaycode.logger import get_logger
from relaycode.providers.base import CompletionClient
from relaycode.tools.registry import ToolRegistry
from relaycode.tools.standard import DEFAULT_TOOL_IDS
from relaycode.types.events import EventType, LoopEvent

logger = get_logger(__name__)

PREVIEW_LINES = 5


class BatchTask(BaseModel):
    name: str
    prompt: str
    tools: list[str] | None = None

    @property
    def tool_ids(self) -> list[str]:
        return list(self.tools) if self.tools is not None else list(DEFAULT_TOOL_IDS)


class BatchFile(BaseModel):
    version: str = "1"
    tasks: list[BatchTask]


def load_batch_file(path: str | Path) -> BatchFile:
    """Read and validate a batch file.

    Raises BatchFileError for unreadable files, invalid JSON, or a
    document that is not a task list.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BatchFileError(f"Cannot read batch file: {e}", path=str(path)) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BatchFileError(f"Batch file is not valid JSON: {e}", path=str(path)) from e
    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        raise BatchFileError("Batch file must contain a 'tasks' array", path=str(path))
    try:
        return BatchFile.model_validate(data)
    except ValidationError as e:
        raise BatchFileError(f"Invalid batch file: {e}", path=str(path)) from e


@dataclass(slots=True)
class TaskOutcome:
    name: str
    result: LoopResult


@dataclass(slots=True)
class BatchSummary:
    """Per-task results of a batch run."""

    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for o in self.outcomes if o.result.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.passed

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def _echo_tool_progress(event: LoopEvent) -> None:
    if event.type in (EventType.TOOL_COMPLETE, EventType.TOOL_ERROR):
        click.echo(f"  > {event.tool}: {event.title}")


def _echo_preview(content: str) -> None:
    lines = content.split("\n")
    for line in lines[:PREVIEW_LINES]:
        click.echo(f"  {line}")
    if len(lines) > PREVIEW_LINES:
        click.echo(f"  ... ({len(lines)} lines)")


async def run_batch(
    path: str | Path,
    *,
    client: CompletionClient,
    registry: ToolRegistry,
    system_prompt: str,
    project_root: Path,
    loop_config: LoopConfig | None = None,
) -> BatchSummary:
    """Run every task in the batch file sequentially.

    Each task gets a fresh session. A failed task is reported and the
    batch moves on to the next one.
    """
    click.echo("Batch Mode")
    click.echo(f"File: {path}\n")

    batch = load_batch_file(path)
    summary = BatchSummary()
    total = len(batch.tasks)

    for index, task in enumerate(batch.tasks, start=1):
        click.echo(f"[{index}/{total}] {task.name}")
        ctx = LoopContext(
            client=client,
            registry=registry,
            session=ConversationSession.for_task(system_prompt, task.prompt),
            config=loop_config or LoopConfig(),
            tool_ids=task.tool_ids,
            project_root=project_root,
        )
        ctx.on_event(_echo_tool_progress)

        result = await run_orchestration_loop(ctx)
        summary.outcomes.append(TaskOutcome(name=task.name, result=result))
        logger.debug("batch_task_finished", task=task.name, success=result.success,
                     reason=str(result.reason), round_trips=result.round_trips)

        if result.success:
            if result.response:
                _echo_preview(result.response)
            click.echo("  OK\n")
        else:
            click.echo(f"  FAILED: {result.message}\n", err=True)

    click.echo(f"\nBatch complete: {summary.passed} passed, {summary.failed} failed")
    return summary
