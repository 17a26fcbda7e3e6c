"""Run history tracking.

A run appends one ``HistoryEntry`` whenever it enters a state, plus a final
terminal entry once the last handler has returned. The list is append-only
and exposed to callers through the read-only ``RunHistory`` view, which
always reflects the entries recorded so far.
"""

from __future__ import annotations

import time
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, overload


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Snapshot of the context at one point of a run.

    Attributes:
        state: State the snapshot belongs to.
        context: Context on entry, or the final merged context if terminal.
        timestamp: Unix timestamp when the entry was recorded.
        terminal: True for the entry recorded after the last handler returned.
    """

    state: str
    context: Any
    timestamp: float = field(default_factory=time.time)
    terminal: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "context": self.context,
            "timestamp": self.timestamp,
        }


# The terminal entry is what on_finish receives
FinalState = HistoryEntry


class RunHistory(Sequence[HistoryEntry]):
    """Read-only, live view over a run's history entries."""

    __slots__ = ("_entries",)

    def __init__(self, entries: list[HistoryEntry] | None = None) -> None:
        self._entries: list[HistoryEntry] = entries if entries is not None else []

    @overload
    def __getitem__(self, index: int) -> HistoryEntry: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[HistoryEntry, ...]: ...

    def __getitem__(
        self, index: int | slice
    ) -> HistoryEntry | tuple[HistoryEntry, ...]:
        if isinstance(index, slice):
            return tuple(self._entries[index])
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        # Iterate over a copy so appends during iteration are not observed
        return iter(tuple(self._entries))

    def __repr__(self) -> str:
        states = ", ".join(entry.state for entry in self._entries)
        return f"RunHistory([{states}])"

    @property
    def latest(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def states(self) -> tuple[str, ...]:
        return tuple(entry.state for entry in self._entries)

    def _append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)
