"""Configuration loading and management."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from relaycode.context import find_project_root
from relaycode.core.context import DEFAULT_MAX_ITERATIONS, LoopConfig
from relaycode.errors import ConfigurationError
from relaycode.tools.permission import ConfigPermissions

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_MODEL = "llama3.2"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7

# Config directory names
PROJECT_DIR = ".relaycode"
USER_DIR_NAME = ".relaycode"

ENV_PREFIX = "RELAYCODE_"


@dataclass(slots=True)
class RelayConfig:
    """Merged configuration from all sources.

    Priority: CLI args > env vars > project config > user config > defaults
    """

    # Endpoint
    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    model: str = DEFAULT_MODEL

    # Execution
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    timeout: float = 120.0
    tool_timeout: float = 120.0
    chunk_timeout: float | None = None

    # Permissions
    allow_file_write: bool = False
    allow_bash: bool = False

    # Paths
    project_root: str = ""

    debug: bool = False

    def validate(self) -> None:
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not 0 <= self.temperature <= 2:
            raise ConfigurationError(f"temperature must be between 0 and 2, got {self.temperature}")
        if self.max_tokens < 1:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")

    def loop_config(self, *, streaming: bool = False) -> LoopConfig:
        return LoopConfig(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            max_iterations=self.max_iterations,
            streaming=streaming,
            chunk_timeout=self.chunk_timeout,
            tool_timeout=self.tool_timeout,
        )

    def permission_checker(self) -> ConfigPermissions:
        return ConfigPermissions(allow_file_write=self.allow_file_write, allow_bash=self.allow_bash)


def get_user_config_dir() -> Path:
    """Get the user-level config directory (~/.relaycode/)."""
    return Path.home() / USER_DIR_NAME


def load_json_config(path: Path) -> dict[str, Any]:
    """Load a JSON config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError:
        return {}
    return data if isinstance(data, dict) else {}


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError:
        return {}
    return data if isinstance(data, dict) else {}


def _env_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def load_config(
    *,
    cli_args: dict[str, Any] | None = None,
    working_dir: str | None = None,
) -> RelayConfig:
    """Load configuration from all sources with proper priority.

    Priority: CLI args > env vars > project config > user config > defaults
    """
    load_dotenv()
    config = RelayConfig()
    cli_args = cli_args or {}

    if explicit_root := cli_args.get("project_root"):
        config.project_root = str(Path(explicit_root).resolve())
    else:
        config.project_root = str(find_project_root(Path(working_dir or os.getcwd())))

    # 1. User-level config (~/.relaycode/config.json)
    _apply_dict(config, load_json_config(get_user_config_dir() / "config.json"))

    # 2. Project-level config (.relaycode/config.json or config.yaml)
    project_dir = Path(config.project_root) / PROJECT_DIR
    _apply_dict(config, load_json_config(project_dir / "config.json"))
    _apply_dict(config, load_yaml_config(project_dir / "config.yaml"))

    # 3. Environment variables
    if api_url := os.environ.get(f"{ENV_PREFIX}API_URL"):
        config.api_url = api_url
    if api_key := os.environ.get(f"{ENV_PREFIX}API_KEY"):
        config.api_key = api_key
    if model := os.environ.get(f"{ENV_PREFIX}MODEL"):
        config.model = model
    if debug := os.environ.get(f"{ENV_PREFIX}DEBUG"):
        config.debug = _env_bool(debug)

    # 4. CLI args (highest priority)
    _apply_dict(config, cli_args)

    config.validate()
    return config


def _apply_dict(config: RelayConfig, data: dict[str, Any]) -> None:
    """Apply dictionary values to config, only for known fields."""
    field_map = {
        "api_url": "api_url",
        "api_key": "api_key",
        "model": "model",
        "temperature": "temperature",
        "max_tokens": "max_tokens",
        "max_iterations": "max_iterations",
        "timeout": "timeout",
        "tool_timeout": "tool_timeout",
        "chunk_timeout": "chunk_timeout",
        "allow_file_write": "allow_file_write",
        "allow_bash": "allow_bash",
        "debug": "debug",
        # Aliases from JSON config
        "apiUrl": "api_url",
        "substratum": "api_url",
        "apiKey": "api_key",
        "maxTokens": "max_tokens",
        "maxIterations": "max_iterations",
        "toolTimeout": "tool_timeout",
        "chunkTimeout": "chunk_timeout",
        "allowFileWrite": "allow_file_write",
        "allowBash": "allow_bash",
    }
    for key, attr in field_map.items():
        if key in data and data[key] is not None:
            setattr(config, attr, data[key])

    # Nested permission block: {"tools": {"allowFileWrite": true, ...}}
    tools = data.get("tools")
    if isinstance(tools, dict):
        for key, attr in (("allowFileWrite", "allow_file_write"), ("allowBash", "allow_bash")):
            if tools.get(key) is not None:
                setattr(config, attr, bool(tools[key]))
