from __future__ import annotations

from typing import Any

from orchestra.exceptions.base import OrchestraError


class EngineError(OrchestraError):
    """Base exception for failures of the run loop itself.

    Attributes:
        message: Human-readable error message.
        state: Name of the state being executed when the error occurred.
    """

    def __init__(self, message: str, state: str | None = None) -> None:
        self.state = state
        super().__init__(message)


class StateNotFoundError(EngineError):
    """Raised when the current state name has no registered handler.

    This is checked lazily, when the run loop is about to enter the state,
    so it surfaces on the event sequence rather than at construction.

    Attributes:
        state: The missing state name.
        available: Names registered with the orchestra.
    """

    def __init__(self, state: str | None, available: tuple[str, ...] = ()) -> None:
        self.available = available
        message = f"State '{state}' not found"
        if available:
            message += f". Registered states: {', '.join(available)}"
        super().__init__(message, state=state)


class HandlerResultError(EngineError):
    """Raised when a handler returns something other than a handler result.

    Attributes:
        state: State whose handler returned the bad value.
        result: The value that was returned.
    """

    def __init__(self, state: str, result: Any) -> None:
        self.result = result
        super().__init__(
            f"Handler for state '{state}' returned {type(result).__name__}; "
            "expected HandlerResult or a mapping with a 'context' key",
            state=state,
        )


class ContextMergeError(EngineError):
    """Raised when a partial update cannot be merged onto the context.

    Attributes:
        context_type: Name of the context type that could not be merged.
    """

    def __init__(self, context_type: str, reason: str | None = None) -> None:
        self.context_type = context_type
        message = f"Cannot merge update into context of type '{context_type}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RunConsumedError(EngineError):
    """Raised when a run's event sequence is iterated a second time."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run '{run_id}' has already been consumed")


class DispatchClosedError(EngineError):
    """Raised when a dispatch channel is used after its step finished."""

    def __init__(self, state: str, name: str) -> None:
        self.name = name
        super().__init__(
            f"Dispatch channel for state '{state}' is closed; "
            f"cannot dispatch '{name}' outside the handler invocation",
            state=state,
        )
