"""Catalogue of recognised stream chunk shapes.

Chunks arrive from the model client as loosely-typed mappings (or objects)
tagged by ``type``. This module gives each recognised shape a pydantic model
and validates raw chunks against the discriminated union ``StreamChunk``.
Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Annotated, Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from orchestra.exceptions import UnrecognizedChunkError

__all__ = [
    "BaseChunk",
    "TextDeltaChunk",
    "ReasoningChunk",
    "ToolCallStreamingStartChunk",
    "ToolCallDeltaChunk",
    "ToolCallChunk",
    "ToolResultChunk",
    "ErrorChunk",
    "StepStartChunk",
    "StepFinishChunk",
    "FinishChunk",
    "MessageAnnotationChunk",
    "DataChunk",
    "Usage",
    "StreamChunk",
    "CHUNK_TYPES",
    "chunk_field",
    "parse_chunk",
]


class BaseChunk(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )


class Usage(BaseChunk):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class TextDeltaChunk(BaseChunk):
    type: Literal["text-delta"]
    text_delta: str


class ReasoningChunk(BaseChunk):
    type: Literal["reasoning"]
    text_delta: str


class ToolCallStreamingStartChunk(BaseChunk):
    type: Literal["tool-call-streaming-start"]
    tool_call_id: str
    tool_name: str


class ToolCallDeltaChunk(BaseChunk):
    type: Literal["tool-call-delta"]
    tool_call_id: str
    tool_name: str
    args_text_delta: str


class ToolCallChunk(BaseChunk):
    type: Literal["tool-call"]
    tool_call_id: str
    tool_name: str
    args: Any = None


class ToolResultChunk(BaseChunk):
    type: Literal["tool-result"]
    tool_call_id: str
    tool_name: str
    result: Any = None
    args: Any = None


class ErrorChunk(BaseChunk):
    type: Literal["error"]
    error: Any = None


class StepStartChunk(BaseChunk):
    type: Literal["step-start"]
    message_id: str | None = None


class StepFinishChunk(BaseChunk):
    type: Literal["step-finish"]
    finish_reason: str
    usage: Usage | None = None
    is_continued: bool = False


class FinishChunk(BaseChunk):
    type: Literal["finish"]
    finish_reason: str
    usage: Usage | None = None


class MessageAnnotationChunk(BaseChunk):
    type: Literal["message-annotation"]
    value: Any


class DataChunk(BaseChunk):
    type: Literal["data"]
    value: Any


StreamChunk = Annotated[
    TextDeltaChunk
    | ReasoningChunk
    | ToolCallStreamingStartChunk
    | ToolCallDeltaChunk
    | ToolCallChunk
    | ToolResultChunk
    | ErrorChunk
    | StepStartChunk
    | StepFinishChunk
    | FinishChunk
    | MessageAnnotationChunk
    | DataChunk,
    Field(discriminator="type"),
]

CHUNK_MODELS: tuple[type[BaseChunk], ...] = get_args(get_args(StreamChunk)[0])

#: Wire ``type`` tags of every recognised chunk
CHUNK_TYPES: frozenset[str] = frozenset(
    get_args(model.model_fields["type"].annotation)[0] for model in CHUNK_MODELS
)

_adapter: TypeAdapter[Any] = TypeAdapter(StreamChunk)


def chunk_field(chunk: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping chunk or an attribute-style chunk."""
    if isinstance(chunk, Mapping):
        return chunk.get(name, default)
    return getattr(chunk, name, default)


def _as_mapping(chunk: Any) -> Mapping[str, Any] | None:
    if isinstance(chunk, Mapping):
        return chunk
    if isinstance(chunk, BaseModel):
        return chunk.model_dump(by_alias=True)
    if dataclasses.is_dataclass(chunk) and not isinstance(chunk, type):
        return dataclasses.asdict(chunk)
    if hasattr(chunk, "__dict__"):
        return vars(chunk)
    return None


def parse_chunk(chunk: Any) -> BaseChunk:
    """Validate a raw chunk against the catalogue.

    Raises:
        UnrecognizedChunkError: If the chunk's type is not in the catalogue or
            its fields do not match the recognised shape.
    """
    if isinstance(chunk, CHUNK_MODELS):
        return chunk

    data = _as_mapping(chunk)
    chunk_type = data.get("type") if data is not None else None
    if data is None or chunk_type not in CHUNK_TYPES:
        raise UnrecognizedChunkError(chunk_type, chunk)

    try:
        parsed: BaseChunk = _adapter.validate_python(dict(data))
    except ValidationError as e:
        raise UnrecognizedChunkError(
            chunk_type, chunk, reason=f"malformed: {e.error_count()} error(s)"
        ) from e
    return parsed
