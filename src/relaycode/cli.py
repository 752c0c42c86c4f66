"""CLI entry point for relaycode."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import click

from relaycode import __version__
from relaycode.config import RelayConfig, load_config
from relaycode.context import ProjectContext
from relaycode.errors import BatchFileError, ConfigurationError
from relaycode.logger import get_logger, setup_logging
from relaycode.modes.batch import run_batch
from relaycode.modes.streaming import read_prompt, run_streaming
from relaycode.providers.registry import create_client
from relaycode.tools.registry import ToolRegistry
from relaycode.tools.standard import create_standard_registry

logger = get_logger(__name__)

CLIENT_CHOICES = ["openai-compat", "mock"]


@click.group(invoke_without_command=True)
@click.option("--api-url", help="Base URL of the chat-completions endpoint")
@click.option("--model", "-m", help="Model to request")
@click.option("--max-iterations", "-i", type=int, help="Maximum round trips per task")
@click.option("--project-root", type=click.Path(file_okay=False), help="Project root (default: detected)")
@click.option("--allow-file-write", is_flag=True, help="Allow the write and edit tools and mutating git commands")
@click.option("--allow-bash", is_flag=True, help="Allow the bash tool")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def main(
    ctx: click.Context,
    api_url: str | None,
    model: str | None,
    max_iterations: int | None,
    project_root: str | None,
    allow_file_write: bool,
    allow_bash: bool,
    debug: bool,
    version: bool,
) -> None:
    """relaycode - tool-calling coding assistant for batch and streaming runs."""
    if version:
        click.echo(f"relaycode {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    cli_args: dict[str, Any] = {}
    if api_url:
        cli_args["api_url"] = api_url
    if model:
        cli_args["model"] = model
    if max_iterations is not None:
        cli_args["max_iterations"] = max_iterations
    if project_root:
        cli_args["project_root"] = project_root
    if allow_file_write:
        cli_args["allow_file_write"] = True
    if allow_bash:
        cli_args["allow_bash"] = True
    if debug:
        cli_args["debug"] = True

    try:
        config = load_config(cli_args=cli_args)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    setup_logging(debug=config.debug)
    ctx.obj = config


def _build_registry(config: RelayConfig) -> ToolRegistry:
    return create_standard_registry(
        permission_checker=config.permission_checker(),
        tool_timeout=config.tool_timeout,
    )


@main.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--client", "client_name", type=click.Choice(CLIENT_CHOICES), default="openai-compat",
              hidden=True)
@click.pass_obj
def batch(config: RelayConfig, file: str, client_name: str) -> None:
    """Run the tasks in a JSON batch FILE one after another."""

    async def _run() -> int:
        project = ProjectContext.for_root(Path(config.project_root))
        client = create_client(config, name=client_name)
        try:
            summary = await run_batch(
                file,
                client=client,
                registry=_build_registry(config),
                system_prompt=project.system_prompt(),
                project_root=project.root,
                loop_config=config.loop_config(),
            )
        except BatchFileError as e:
            click.echo(f"Error: {e}", err=True)
            return 2
        finally:
            await client.close()
        return summary.exit_code

    try:
        exit_code = asyncio.run(_run())
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = 1
    sys.exit(exit_code)


@main.command()
@click.option("--client", "client_name", type=click.Choice(CLIENT_CHOICES), default="openai-compat",
              hidden=True)
@click.pass_obj
def stream(config: RelayConfig, client_name: str) -> None:
    """Read a prompt from stdin and stream the answer to stdout."""
    try:
        prompt = read_prompt(click.get_text_stream("stdin"))
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    async def _run() -> int:
        project = ProjectContext.for_root(Path(config.project_root))
        client = create_client(config, name=client_name)
        try:
            result = await run_streaming(
                prompt,
                client=client,
                registry=_build_registry(config),
                system_prompt=project.system_prompt(),
                project_root=project.root,
                loop_config=config.loop_config(streaming=True),
            )
        finally:
            await client.close()
        logger.debug("stream_finished", reason=str(result.reason), round_trips=result.round_trips)
        return 0 if result.success else 1

    try:
        exit_code = asyncio.run(_run())
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
