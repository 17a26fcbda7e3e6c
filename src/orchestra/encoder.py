"""AI data stream encoder.

Serializes the stream chunks carried by a run's custom events into the AI SDK
data stream protocol: one ``<code>:<json>\\n`` record per chunk. All other
events are ignored. A chunk outside the catalogue in ``orchestra.chunks``
fails with ``UnrecognizedChunkError`` rather than being dropped.

Usage:
    run = orchestra.create_run("intent", {"query": query, "messages": []})
    return StreamingResponse(encode_run(run), headers=DATA_STREAM_HEADERS)
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator
from functools import singledispatch
from typing import Any

from orchestra.chunks import (
    CHUNK_MODELS,
    BaseChunk,
    DataChunk,
    ErrorChunk,
    FinishChunk,
    MessageAnnotationChunk,
    ReasoningChunk,
    StepFinishChunk,
    StepStartChunk,
    TextDeltaChunk,
    ToolCallChunk,
    ToolCallDeltaChunk,
    ToolCallStreamingStartChunk,
    ToolResultChunk,
    Usage,
    chunk_field,
    parse_chunk,
)
from orchestra.constants import DATA_STREAM_VERSION, STREAM_CHUNK_EVENT
from orchestra.events import CustomEvent
from orchestra.exceptions import UnrecognizedChunkError
from orchestra.logging import get_logger

__all__ = [
    "DATA_STREAM_HEADERS",
    "DATA_STREAM_PART_CODES",
    "format_data_stream_part",
    "encode_chunk",
    "encode_run",
]

logger = get_logger(__name__)

#: Response headers for serving an encoded run over HTTP
DATA_STREAM_HEADERS: dict[str, str] = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Vercel-AI-Data-Stream": DATA_STREAM_VERSION,
}

#: Record prefix for each data stream part
DATA_STREAM_PART_CODES: dict[str, str] = {
    "text": "0",
    "data": "2",
    "error": "3",
    "message_annotations": "8",
    "tool_call": "9",
    "tool_result": "a",
    "tool_call_streaming_start": "b",
    "tool_call_delta": "c",
    "finish_message": "d",
    "finish_step": "e",
    "start_step": "f",
    "reasoning": "g",
}


def format_data_stream_part(part: str, value: Any) -> str:
    """Format one wire record, e.g. ``format_data_stream_part("text", "Hi")``
    returns ``'0:"Hi"\\n'``."""
    code = DATA_STREAM_PART_CODES[part]
    payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return f"{code}:{payload}\n"


def _usage(usage: Usage | None) -> dict[str, Any] | None:
    if usage is None:
        return None
    # Unknown counts are sent as null
    return {
        "promptTokens": usage.prompt_tokens,
        "completionTokens": usage.completion_tokens,
    }


def _without_none(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@singledispatch
def _format(chunk: BaseChunk) -> str:
    raise UnrecognizedChunkError(chunk_field(chunk, "type"), chunk)


@_format.register
def _(chunk: TextDeltaChunk) -> str:
    return format_data_stream_part("text", chunk.text_delta)


@_format.register
def _(chunk: ReasoningChunk) -> str:
    return format_data_stream_part("reasoning", chunk.text_delta)


@_format.register
def _(chunk: ToolCallStreamingStartChunk) -> str:
    return format_data_stream_part(
        "tool_call_streaming_start",
        {"toolCallId": chunk.tool_call_id, "toolName": chunk.tool_name},
    )


@_format.register
def _(chunk: ToolCallDeltaChunk) -> str:
    return format_data_stream_part(
        "tool_call_delta",
        {"toolCallId": chunk.tool_call_id, "argsTextDelta": chunk.args_text_delta},
    )


@_format.register
def _(chunk: ToolCallChunk) -> str:
    return format_data_stream_part(
        "tool_call",
        {
            "toolCallId": chunk.tool_call_id,
            "toolName": chunk.tool_name,
            "args": chunk.args,
        },
    )


@_format.register
def _(chunk: ToolResultChunk) -> str:
    return format_data_stream_part(
        "tool_result",
        {"toolCallId": chunk.tool_call_id, "result": chunk.result},
    )


@_format.register
def _(chunk: ErrorChunk) -> str:
    # A chunk without an error payload still produces a record
    message = "" if chunk.error is None else str(chunk.error)
    return format_data_stream_part("error", message)


@_format.register
def _(chunk: StepStartChunk) -> str:
    return format_data_stream_part("start_step", {"messageId": chunk.message_id})


@_format.register
def _(chunk: StepFinishChunk) -> str:
    return format_data_stream_part(
        "finish_step",
        _without_none(
            finishReason=chunk.finish_reason,
            usage=_usage(chunk.usage),
            isContinued=chunk.is_continued,
        ),
    )


@_format.register
def _(chunk: FinishChunk) -> str:
    return format_data_stream_part(
        "finish_message",
        _without_none(finishReason=chunk.finish_reason, usage=_usage(chunk.usage)),
    )


@_format.register
def _(chunk: MessageAnnotationChunk) -> str:
    return format_data_stream_part("message_annotations", [chunk.value])


@_format.register
def _(chunk: DataChunk) -> str:
    return format_data_stream_part("data", [chunk.value])


# Every catalogued chunk model must have a formatter
_unformatted = [
    model.__name__ for model in CHUNK_MODELS if model not in _format.registry
]
if _unformatted:
    raise RuntimeError(f"No data stream formatter for: {', '.join(_unformatted)}")


def encode_chunk(chunk: Any) -> str:
    """Encode one stream chunk as a data stream record.

    Raises:
        UnrecognizedChunkError: If the chunk is outside the catalogue.
    """
    return _format(parse_chunk(chunk))


async def encode_run(
    events: AsyncIterable[Any],
    *,
    event_name: str = STREAM_CHUNK_EVENT,
) -> AsyncIterator[bytes]:
    """Encode a run's stream-chunk custom events as UTF-8 data stream records.

    Args:
        events: A Run, or any async iterable of run events.
        event_name: Custom event name carrying stream chunks.

    Yields:
        One encoded record per stream chunk, in event order.

    Raises:
        UnrecognizedChunkError: On the first chunk outside the catalogue.
    """
    records = 0
    async for event in events:
        if not isinstance(event, CustomEvent) or event.name != event_name:
            continue
        try:
            record = encode_chunk(event.data)
        except UnrecognizedChunkError as e:
            logger.error("unrecognized_chunk", chunk_type=e.chunk_type, records=records)
            raise
        records += 1
        yield record.encode("utf-8")

    logger.debug("run_encoded", records=records)
