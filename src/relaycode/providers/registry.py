"""Completion client construction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaycode.errors import ConfigurationError
from relaycode.providers.base import StreamingCompletionClient

if TYPE_CHECKING:
    from relaycode.config import RelayConfig


def create_client(config: RelayConfig, *, name: str | None = None) -> StreamingCompletionClient:
    """Create a completion client for ``config``.

    ``name`` selects the client kind; ``"mock"`` returns a scripted client
    that answers every request with a fixed reply.
    """
    kind = name or "openai-compat"

    if kind == "mock":
        from relaycode.providers.mock import MockClient
        return MockClient()

    if kind == "openai-compat":
        if not config.api_url:
            raise ConfigurationError("No completion endpoint configured. Set RELAYCODE_API_URL or --api-url.")
        from relaycode.providers.openai_compat import OpenAICompatClient
        return OpenAICompatClient(
            api_url=config.api_url,
            model=config.model,
            api_key=config.api_key,
            timeout=config.timeout,
        )

    raise ConfigurationError(f"Unknown completion client: {kind}")
