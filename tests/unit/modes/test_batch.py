"""Tests for batch mode."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from relaycode.core.context import LoopConfig
from relaycode.errors import BatchFileError, ProviderError
from relaycode.modes.batch import BatchTask, load_batch_file, run_batch
from relaycode.providers.mock import MockClient
from relaycode.tools.standard import DEFAULT_TOOL_IDS, create_standard_registry
from relaycode.types.messages import Role, ToolCallRequest


def _write_batch(directory: Path, tasks: Any, name: str = "tasks.json") -> Path:
    path = directory / name
    path.write_text(json.dumps({"version": "1", "tasks": tasks}))
    return path


async def _run(path: Path, client: MockClient, root: Path, **kwargs: Any):
    return await run_batch(
        path,
        client=client,
        registry=create_standard_registry(),
        system_prompt="You are a coding assistant.",
        project_root=root,
        loop_config=kwargs.pop("loop_config", LoopConfig(max_retries=0)),
        **kwargs,
    )


class TestLoadBatchFile:
    def test_valid(self, tmp_path: Path) -> None:
        path = _write_batch(tmp_path, [{"name": "t1", "prompt": "say hello", "tools": ["read"]}])
        batch = load_batch_file(path)
        assert batch.version == "1"
        assert batch.tasks[0].name == "t1"
        assert batch.tasks[0].tool_ids == ["read"]

    def test_default_tools(self) -> None:
        assert BatchTask(name="t", prompt="p").tool_ids == list(DEFAULT_TOOL_IDS)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(BatchFileError, match="Cannot read"):
            load_batch_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(BatchFileError, match="not valid JSON"):
            load_batch_file(path)

    def test_missing_tasks(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text('{"version": "1"}')
        with pytest.raises(BatchFileError, match="'tasks' array"):
            load_batch_file(path)

    def test_task_without_prompt(self, tmp_path: Path) -> None:
        path = _write_batch(tmp_path, [{"name": "t1"}])
        with pytest.raises(BatchFileError, match="Invalid batch file"):
            load_batch_file(path)


class TestRunBatch:
    @pytest.mark.asyncio
    async def test_single_task(self, tmp_workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = _write_batch(tmp_workdir, [{"name": "t1", "prompt": "say hello"}])
        client = MockClient().add_response("hello")

        summary = await _run(path, client, tmp_workdir)

        out = capsys.readouterr().out
        assert "Batch Mode" in out
        assert "[1/1] t1" in out
        assert "  hello" in out
        assert "  OK" in out
        assert "Batch complete: 1 passed, 0 failed" in out
        assert summary.exit_code == 0
        assert client.call_count == 1

    @pytest.mark.asyncio
    async def test_tasks_get_fresh_sessions(self, tmp_workdir: Path) -> None:
        path = _write_batch(tmp_workdir, [
            {"name": "a", "prompt": "first"},
            {"name": "b", "prompt": "second"},
        ])
        client = MockClient().add_response("one").add_response("two")

        summary = await _run(path, client, tmp_workdir)

        assert summary.passed == 2
        assert client.call_count == 2
        second_messages, _ = client.call_history[1]
        assert [m.role for m in second_messages] == [Role.SYSTEM, Role.USER]
        assert second_messages[1].content == "second"

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(
        self, tmp_workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = _write_batch(tmp_workdir, [
            {"name": "bad", "prompt": "x"},
            {"name": "good", "prompt": "y"},
        ])
        client = MockClient()
        client.add_error(ProviderError("down", retryable=False)).add_response("fine")

        summary = await _run(path, client, tmp_workdir)

        captured = capsys.readouterr()
        assert "FAILED: down" in captured.err
        assert "Batch complete: 1 passed, 1 failed" in captured.out
        assert summary.exit_code == 1

    @pytest.mark.asyncio
    async def test_tool_progress_and_task_tools(
        self, tmp_workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_workdir / "notes.txt").write_text("remember")
        path = _write_batch(tmp_workdir, [{"name": "t1", "prompt": "read notes", "tools": ["read"]}])
        client = MockClient()
        client.add_tool_response([ToolCallRequest(id="c1", name="read", arguments='{"path": "notes.txt"}')])
        client.add_response("done")

        summary = await _run(path, client, tmp_workdir)

        out = capsys.readouterr().out
        assert "  > read: Read notes.txt" in out
        assert summary.outcomes[0].result.round_trips == 2
        _, options = client.call_history[0]
        assert options is not None and [t.name for t in options.tools] == ["read"]

    @pytest.mark.asyncio
    async def test_tool_outside_task_list_not_run(self, tmp_workdir: Path) -> None:
        (tmp_workdir / "secret.txt").write_text("x")
        path = _write_batch(tmp_workdir, [{"name": "t1", "prompt": "p", "tools": ["read"]}])
        client = MockClient()
        client.add_tool_response([ToolCallRequest(id="c1", name="list", arguments="{}")])
        client.add_response("done")

        summary = await _run(path, client, tmp_workdir)

        assert summary.passed == 1
        second_messages, _ = client.call_history[1]
        tool_msg = second_messages[-1]
        assert tool_msg.role == Role.TOOL
        assert "not enabled" in tool_msg.content
        assert "secret.txt" not in tool_msg.content

    @pytest.mark.asyncio
    async def test_long_response_preview(
        self, tmp_workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = _write_batch(tmp_workdir, [{"name": "t1", "prompt": "p"}])
        client = MockClient().add_response("\n".join(f"line {i}" for i in range(8)))

        await _run(path, client, tmp_workdir)

        out = capsys.readouterr().out
        assert "  line 4" in out
        assert "  line 5" not in out
        assert "  ... (8 lines)" in out

    @pytest.mark.asyncio
    async def test_iteration_budget_applies(self, tmp_workdir: Path) -> None:
        path = _write_batch(tmp_workdir, [{"name": "t1", "prompt": "p"}])

        client = MockClient()
        for i in range(5):
            client.add_tool_response([ToolCallRequest(id=f"c{i}", name="list", arguments="{}")])

        summary = await _run(path, client, tmp_workdir, loop_config=LoopConfig(max_iterations=3, max_retries=0))

        assert summary.failed == 1
        assert client.call_count == 3

    @pytest.mark.asyncio
    async def test_malformed_file_raises(self, tmp_workdir: Path) -> None:
        path = tmp_workdir / "bad.json"
        path.write_text("[]")
        with pytest.raises(BatchFileError):
            await _run(path, MockClient(), tmp_workdir)
