"""Completion clients."""

from relaycode.providers.base import CompletionClient, StreamingCompletionClient
from relaycode.providers.mock import MockClient
from relaycode.providers.openai_compat import OpenAICompatClient
from relaycode.providers.registry import create_client

__all__ = [
    "CompletionClient",
    "MockClient",
    "OpenAICompatClient",
    "StreamingCompletionClient",
    "create_client",
]
