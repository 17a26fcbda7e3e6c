"""Handler result type and normalisation.

Handlers return a partial context plus an optional next state. Besides the
``HandlerResult`` dataclass, a plain mapping is accepted::

    return {"next_state": "plan", "context": {"messages": messages}}

``nextState`` is accepted as an alias of ``next_state``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from orchestra.exceptions import HandlerResultError

_NEXT_STATE_KEYS = ("next_state", "nextState")


@dataclass(frozen=True, slots=True)
class HandlerResult:
    """Outcome of one handler invocation.

    Attributes:
        context: Partial update shallow-merged onto the current context.
        next_state: State to enter next. ``None`` (or empty) ends the run.
    """

    context: Mapping[str, Any] = field(default_factory=dict)
    next_state: str | None = None

    @property
    def is_terminal(self) -> bool:
        return not self.next_state


def coerce_result(state: str, raw: Any) -> HandlerResult:
    """Normalise a handler's return value into a HandlerResult.

    Args:
        state: Name of the state whose handler produced ``raw``.
        raw: The value returned (and awaited) from the handler.

    Returns:
        HandlerResult equivalent of ``raw``.

    Raises:
        HandlerResultError: If ``raw`` is neither a HandlerResult nor a
            mapping carrying a ``context`` key.
    """
    if isinstance(raw, HandlerResult):
        return raw
    if not isinstance(raw, Mapping) or "context" not in raw:
        raise HandlerResultError(state, raw)

    next_state = None
    for key in _NEXT_STATE_KEYS:
        if raw.get(key) is not None:
            next_state = raw[key]
            break
    if next_state is not None and not isinstance(next_state, str):
        raise HandlerResultError(state, raw)

    return HandlerResult(context=raw["context"] or {}, next_state=next_state)
