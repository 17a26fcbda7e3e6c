"""Per-step dispatch channel.

Each handler invocation receives a fresh ``DispatchChannel`` bound to its
state. Calling it records a ``CustomEvent`` and hands it to the channel's
sink; the run loop decides what the sink does with it:

- ``BufferedSink`` keeps events until the handler returns
- an ``asyncio.Queue``'s ``put`` relays them to the consumer immediately

The run loop closes the channel when the step finishes, so a handler cannot
keep emitting into a later step.

Usage:
    async def intent(context, dispatch):
        await dispatch("progress", {"message": "Thinking..."})
        return HandlerResult(context={"ready": True})
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from orchestra.events import CustomEvent
from orchestra.exceptions import DispatchClosedError

# Receives each accepted event; resolves once it is accepted for emission
EventSink = Callable[[CustomEvent], Awaitable[None]]


class BufferedSink:
    """Sink that holds events in call order until drained."""

    def __init__(self) -> None:
        self._events: list[CustomEvent] = []

    async def __call__(self, event: CustomEvent) -> None:
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def drain(self) -> list[CustomEvent]:
        """Return buffered events in call order and empty the buffer."""
        events, self._events = self._events, []
        return events


class DispatchChannel:
    """Callable channel a handler uses to emit custom events.

    Attributes:
        state: Name of the state the channel is bound to.
        count: Number of events accepted so far.
        closed: Whether the owning step has finished.
    """

    __slots__ = ("_state", "_sink", "_count", "_closed")

    def __init__(self, state: str, sink: EventSink) -> None:
        self._state = state
        self._sink = sink
        self._count = 0
        self._closed = False

    @property
    def state(self) -> str:
        return self._state

    @property
    def count(self) -> int:
        return self._count

    @property
    def closed(self) -> bool:
        return self._closed

    async def __call__(self, name: str, data: Any = None) -> None:
        """Record a custom event for the current step.

        Args:
            name: Event name; must be a non-empty string.
            data: Arbitrary payload carried by the event.

        Raises:
            DispatchClosedError: If the step that owns this channel finished.
            ValueError: If ``name`` is empty or not a string.
        """
        if self._closed:
            raise DispatchClosedError(self._state, str(name))
        if not isinstance(name, str) or not name:
            raise ValueError("Custom event name must be a non-empty string")

        self._count += 1
        await self._sink(CustomEvent(name=name, data=data, state=self._state))

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"DispatchChannel(state={self._state!r}, count={self._count}, {status})"
