"""Event definitions for Orchestra runs.

The event sequence of a run is built from exactly three frozen dataclasses:

- ``StateTransition``: entering a state (``to_state`` is None) or leaving it
  for the next one (``to_state`` set)
- ``StateCompletion``: the terminal state's handler returned no next state
- ``CustomEvent``: one per dispatch call made while a handler executed
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True, slots=True)
class StateTransition:
    """Event emitted when a state is entered or left.

    Attributes:
        from_state: State being entered (entry event) or left (departure).
        context: Context at this point; the merged context on departure.
        to_state: Next state on departure events, None on entry events.
        timestamp: Unix timestamp when the event was created.
    """

    event: ClassVar[str] = "on_state_transition"

    from_state: str
    context: Any
    to_state: str | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def is_entry(self) -> bool:
        return self.to_state is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "event": self.event,
            "from": self.from_state,
            "context": self.context,
        }
        if self.to_state is not None:
            data["to"] = self.to_state
        return data


@dataclass(frozen=True, slots=True)
class StateCompletion:
    """Event emitted once, when a handler returns no next state.

    Attributes:
        state: The terminal state.
        context: Final merged context.
        timestamp: Unix timestamp when the event was created.
    """

    event: ClassVar[str] = "on_state_completion"

    state: str
    context: Any
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "state": self.state, "context": self.context}


@dataclass(frozen=True, slots=True)
class CustomEvent:
    """Event emitted for each dispatch call made by a handler.

    Attributes:
        name: Event name chosen by the handler.
        data: Arbitrary payload.
        state: State whose handler dispatched the event.
        timestamp: Unix timestamp of the dispatch call.
    """

    event: ClassVar[str] = "on_custom_event"

    name: str
    data: Any = None
    state: str | None = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "name": self.name, "data": self.data}


# Type alias for all run events
OrchestraEvent = StateTransition | StateCompletion | CustomEvent
