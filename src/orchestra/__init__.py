"""Orchestra: a cooperative state-machine engine for streaming agents.

Handlers are async functions keyed by state name. Each receives the current
context and a dispatch channel, and returns a partial context update plus an
optional next state. A run drives the handlers and yields a lazy event
sequence that can be forwarded to a UI as it is produced.

Example:
    >>> from orchestra import HandlerResult, Orchestra
    >>>
    >>> async def greet(context, dispatch):
    ...     await dispatch("greeting", {"text": f"Hello {context['name']}"})
    ...     return HandlerResult(context={"greeted": True})
    >>>
    >>> run = Orchestra({"greet": greet}).create_run("greet", {"name": "Ada"})
    >>> async for event in run:
    ...     print(event)
"""

from __future__ import annotations

from orchestra.config import OrchestraConfig, load_config
from orchestra.context import merge_context
from orchestra.dispatch import DispatchChannel
from orchestra.encoder import DATA_STREAM_HEADERS, encode_chunk, encode_run
from orchestra.engine import Orchestra, Run
from orchestra.events import (
    CustomEvent,
    OrchestraEvent,
    StateCompletion,
    StateTransition,
)
from orchestra.exceptions import (
    ContextMergeError,
    DispatchClosedError,
    HandlerResultError,
    OrchestraError,
    RunConsumedError,
    StateNotFoundError,
    UnrecognizedChunkError,
)
from orchestra.history import FinalState, HistoryEntry, RunHistory
from orchestra.results import HandlerResult
from orchestra.stream import (
    StreamSource,
    StreamSummary,
    create_tool_response,
    process_stream,
)
from orchestra.types import Dispatch, Handler, OnFinish, StateName

__version__ = "0.1.0"

__all__: list[str] = [
    # Engine
    "Orchestra",
    "Run",
    "HandlerResult",
    "merge_context",
    "DispatchChannel",
    # Types
    "Dispatch",
    "Handler",
    "OnFinish",
    "StateName",
    # Events
    "StateTransition",
    "StateCompletion",
    "CustomEvent",
    "OrchestraEvent",
    # History
    "HistoryEntry",
    "FinalState",
    "RunHistory",
    # Streaming
    "StreamSource",
    "StreamSummary",
    "process_stream",
    "create_tool_response",
    # Encoding
    "DATA_STREAM_HEADERS",
    "encode_chunk",
    "encode_run",
    # Configuration
    "OrchestraConfig",
    "load_config",
    # Errors
    "OrchestraError",
    "StateNotFoundError",
    "HandlerResultError",
    "ContextMergeError",
    "RunConsumedError",
    "DispatchClosedError",
    "UnrecognizedChunkError",
]
