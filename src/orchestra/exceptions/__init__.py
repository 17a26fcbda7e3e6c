"""Orchestra exception hierarchy.

All exceptions can be imported from this package:
    from orchestra.exceptions import OrchestraError, StateNotFoundError
"""

from __future__ import annotations

from orchestra.exceptions.base import OrchestraError
from orchestra.exceptions.config import ConfigError
from orchestra.exceptions.encoding import EncodingError, UnrecognizedChunkError
from orchestra.exceptions.engine import (
    ContextMergeError,
    DispatchClosedError,
    EngineError,
    HandlerResultError,
    RunConsumedError,
    StateNotFoundError,
)

__all__ = [
    # Base
    "OrchestraError",
    # Configuration
    "ConfigError",
    # Run loop
    "EngineError",
    "StateNotFoundError",
    "HandlerResultError",
    "ContextMergeError",
    "RunConsumedError",
    "DispatchClosedError",
    # Encoding boundary
    "EncodingError",
    "UnrecognizedChunkError",
]
