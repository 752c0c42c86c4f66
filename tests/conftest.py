"""Global test fixtures for relaycode."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def tmp_workdir(tmp_path: Path) -> Path:
    """Provide a temporary project root for file operation tests."""
    (tmp_path / ".git").mkdir()
    return tmp_path


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep user config and RELAYCODE_* variables out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("RELAYCODE_API_URL", "RELAYCODE_API_KEY", "RELAYCODE_MODEL", "RELAYCODE_DEBUG"):
        monkeypatch.delenv(var, raising=False)
