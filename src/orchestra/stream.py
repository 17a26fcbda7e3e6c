"""Stream adapter for model clients.

``process_stream`` drains a model client's streaming result inside a
handler. Every chunk is forwarded through the handler's dispatch channel as
soon as it arrives, while the result's side-channel awaitables (finish
reason, tool calls, response messages) are awaited concurrently.

Usage:
    async def intent(context, dispatch):
        summary = await process_stream(client.stream(context["query"]), dispatch)
        if summary.finish_reason == "tool-calls":
            ...
        return HandlerResult(context={"messages": summary.messages})
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Awaitable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import anyio

from orchestra.chunks import chunk_field
from orchestra.config import OrchestraConfig
from orchestra.constants import HANDOFF_RESULT
from orchestra.logging import get_logger
from orchestra.types import Dispatch

__all__ = [
    "StreamSource",
    "StreamSummary",
    "process_stream",
    "create_tool_response",
    "is_handoff_call",
]

logger = get_logger(__name__)


@runtime_checkable
class StreamSource(Protocol):
    """Shape of a streaming model result accepted by ``process_stream``.

    Any object exposing these four members works; it does not have to come
    from a particular vendor SDK.

    Attributes:
        finish_reason: Resolves to why generation stopped.
        tool_calls: Resolves to the tool calls made during generation.
        response: Resolves to a mapping or object exposing ``messages``.
        full_stream: Async iterable of heterogeneous chunks.
    """

    finish_reason: Awaitable[str | None]
    tool_calls: Awaitable[list[Any]]
    response: Awaitable[Any]
    full_stream: AsyncIterable[Any]


@dataclass(frozen=True, slots=True)
class StreamSummary:
    """What a drained stream resolved to.

    Attributes:
        finish_reason: Reason reported by the source.
        tool_calls: Tool calls reported by the source.
        messages: Response messages reported by the source.
    """

    finish_reason: str | None
    tool_calls: list[Any] = field(default_factory=list)
    messages: list[Any] = field(default_factory=list)


def is_handoff_call(chunk: Any, marker: str) -> bool:
    """Return True for a tool-call chunk whose tool name contains ``marker``."""
    if chunk_field(chunk, "type") != "tool-call":
        return False
    tool_name = chunk_field(chunk, "toolName")
    return isinstance(tool_name, str) and marker in tool_name


def _handoff_result_chunk(chunk: Any, result: str) -> dict[str, Any]:
    return {
        "type": "tool-result",
        "toolCallId": chunk_field(chunk, "toolCallId"),
        "toolName": chunk_field(chunk, "toolName"),
        "result": result,
        "args": chunk_field(chunk, "args"),
    }


async def process_stream(
    source: StreamSource,
    dispatch: Dispatch,
    *,
    config: OrchestraConfig | None = None,
) -> StreamSummary:
    """Forward every chunk of ``source`` through ``dispatch`` as it arrives.

    A tool-call chunk for a handoff tool is followed by a synthetic
    tool-result chunk carrying a placeholder result, so consumers that pair
    every tool call with a result stay consistent. Error chunks are logged
    and forwarded; they do not stop iteration.

    Args:
        source: Streaming model result.
        dispatch: Dispatch channel of the calling handler.
        config: Optional settings for the event name and handoff rule.

    Returns:
        StreamSummary once the side-channel awaitables resolved and the chunk
        iteration finished.
    """
    config = config or OrchestraConfig()
    event_name = config.stream_chunk_event
    resolved: dict[str, Any] = {}
    forwarded = 0

    async def resolve(key: str, awaitable: Awaitable[Any]) -> None:
        resolved[key] = await awaitable

    async def forward() -> None:
        nonlocal forwarded
        async for chunk in source.full_stream:
            if chunk_field(chunk, "type") == "error":
                logger.error(
                    "stream_error_chunk", error=str(chunk_field(chunk, "error"))
                )

            await dispatch(event_name, chunk)
            forwarded += 1

            if is_handoff_call(chunk, config.handoff_marker):
                await dispatch(
                    event_name, _handoff_result_chunk(chunk, config.handoff_result)
                )
                forwarded += 1

    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(resolve, "finish_reason", source.finish_reason)
            tg.start_soon(resolve, "tool_calls", source.tool_calls)
            tg.start_soon(resolve, "response", source.response)
            tg.start_soon(forward)
    except ExceptionGroup as eg:
        # Surface a single failure as itself rather than as a group
        if len(eg.exceptions) == 1:
            raise eg.exceptions[0] from None
        raise

    messages = chunk_field(resolved["response"], "messages") or []
    logger.debug(
        "stream_processed",
        chunks=forwarded,
        finish_reason=resolved["finish_reason"],
    )
    return StreamSummary(
        finish_reason=resolved["finish_reason"],
        tool_calls=list(resolved["tool_calls"] or []),
        messages=list(messages),
    )


def create_tool_response(tool_call: Any, result: str | None = None) -> dict[str, Any]:
    """Build a ``tool`` role message answering ``tool_call``.

    Handlers use this to close out a handoff tool call in the message history
    before moving to the next state.

    Args:
        tool_call: Tool call (mapping or object) with ``toolCallId`` and
            ``toolName``.
        result: Result text; defaults to the handoff placeholder.
    """
    return {
        "role": "tool",
        "content": [
            {
                "type": "tool-result",
                "toolCallId": chunk_field(tool_call, "toolCallId"),
                "toolName": chunk_field(tool_call, "toolName"),
                "result": result if result is not None else HANDOFF_RESULT,
            }
        ],
    }
