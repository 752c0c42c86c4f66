"""Response handler - dispatches completion requests with retry and stream aggregation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from relaycode.core.context import LoopContext
from relaycode.errors import LLMError, ProviderError, RelayError
from relaycode.logger import get_logger
from relaycode.providers.base import StreamingCompletionClient
from relaycode.types.events import EventType
from relaycode.types.messages import ChatOptions, ChatResponse, StreamEvent, StreamFinal, StreamFragment

logger = get_logger(__name__)

RETRY_MAX_DELAY = 30.0


def build_options(ctx: LoopContext) -> ChatOptions:
    """Build request options from the run config and the task's enabled tools."""
    return ChatOptions(
        model=ctx.config.model,
        max_tokens=ctx.config.max_tokens,
        temperature=ctx.config.temperature,
        tools=ctx.registry.specs_for(ctx.tool_ids) or None,
    )


async def consume_stream(
    stream: AsyncIterator[StreamEvent],
    on_fragment: Callable[[str], Any] | None = None,
    *,
    chunk_timeout: float | None = None,
) -> ChatResponse:
    """Drain a fragment/final channel into one response.

    Each fragment is handed to ``on_fragment`` as soon as it arrives. Tool
    calls are read only from the terminal :class:`StreamFinal`; a stream
    that ends without one is a protocol error. ``chunk_timeout`` bounds
    every pull, including the one that yields the final value.
    """
    iterator = stream.__aiter__()
    fragments: list[str] = []

    try:
        while True:
            try:
                if chunk_timeout is not None:
                    event = await asyncio.wait_for(iterator.__anext__(), timeout=chunk_timeout)
                else:
                    event = await iterator.__anext__()
            except StopAsyncIteration:
                raise LLMError("Stream ended without a final value") from None
            except asyncio.TimeoutError:
                raise ProviderError(
                    f"No stream data received within {chunk_timeout}s",
                    retryable=True,
                ) from None

            match event:
                case StreamFragment(text=text):
                    fragments.append(text)
                    if on_fragment is not None:
                        on_fragment(text)
                case StreamFinal():
                    response = event.to_response()
                    if response.content is None and fragments:
                        response.content = "".join(fragments)
                    return response
                case _:
                    raise LLMError(f"Unexpected stream event: {type(event).__name__}")
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


async def _dispatch(ctx: LoopContext, options: ChatOptions, emitted: list[str]) -> ChatResponse:
    client = ctx.client
    if ctx.config.streaming and isinstance(client, StreamingCompletionClient):
        def _on_fragment(text: str) -> None:
            emitted.append(text)
            if ctx.on_fragment is not None:
                ctx.on_fragment(text)

        return await consume_stream(
            client.stream(ctx.session.messages, options),
            _on_fragment,
            chunk_timeout=ctx.config.chunk_timeout,
        )
    return await client.complete(ctx.session.messages, options)


async def request_completion(ctx: LoopContext) -> ChatResponse:
    """Send the session to the completion client, retrying transient failures.

    Retryable :class:`ProviderError` values are retried with exponential
    backoff. A streamed round that has already written fragments is not
    retried, so output is never duplicated.
    """
    options = build_options(ctx)
    max_retries = ctx.config.max_retries
    start_event = EventType.LLM_STREAM_START if ctx.config.streaming else EventType.LLM_START
    end_event = EventType.LLM_STREAM_END if ctx.config.streaming else EventType.LLM_COMPLETE

    for attempt in range(max_retries + 1):
        ctx.emit_simple(start_event, iteration=ctx.iteration, metadata={"attempt": attempt + 1})
        logger.debug("completion_request", iteration=ctx.iteration, attempt=attempt + 1,
                     messages=len(ctx.session))
        start = time.monotonic()
        emitted: list[str] = []

        try:
            response = await _dispatch(ctx, options, emitted)
        except ProviderError as e:
            duration = time.monotonic() - start
            ctx.emit_simple(
                EventType.LLM_ERROR,
                error=str(e),
                iteration=ctx.iteration,
                metadata={
                    "attempt": attempt + 1,
                    "retryable": e.retryable,
                    "status_code": e.status_code,
                    "duration_ms": duration * 1000,
                },
            )
            if not e.retryable or attempt >= max_retries or emitted:
                raise

            delay = min(ctx.config.retry_base_delay * (2 ** attempt), RETRY_MAX_DELAY)
            logger.warning("completion_retry", attempt=attempt + 1, delay=delay, error=str(e))
            ctx.emit_simple(EventType.LLM_RETRY, error=str(e), metadata={"attempt": attempt + 1, "delay": delay})
            await asyncio.sleep(delay)
            continue
        except RelayError as e:
            ctx.emit_simple(EventType.LLM_ERROR, error=str(e), iteration=ctx.iteration)
            raise
        except Exception as e:
            ctx.emit_simple(EventType.LLM_ERROR, error=str(e), iteration=ctx.iteration)
            raise LLMError(
                f"Unexpected error during completion request: {str(e) or type(e).__name__}"
            ) from e

        duration = time.monotonic() - start
        ctx.emit_simple(
            end_event,
            iteration=ctx.iteration,
            metadata={
                "duration_ms": duration * 1000,
                "tool_calls": len(response.tool_calls),
                "tokens": response.usage.total_tokens if response.usage else 0,
            },
        )
        return response

    raise LLMError("Completion request failed after all retries")
