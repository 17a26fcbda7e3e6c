"""Type aliases for Orchestra handlers and callbacks.

Handlers are looked up by state name at run time, so a registry is simply a
mapping from ``StateName`` to ``Handler`` with one uniform signature.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from orchestra.history import FinalState
    from orchestra.results import HandlerResult

StateName: TypeAlias = str

# Emits a custom event from inside a running handler
Dispatch = Callable[[str, Any], Awaitable[None]]

# A handler returns a HandlerResult or an equivalent mapping, either
# directly or from a coroutine
Handler = Callable[
    [Any, Dispatch],
    "HandlerResult | Mapping[str, Any] | Awaitable[HandlerResult | Mapping[str, Any]]",
]

# Called once with the terminal history entry; may be sync or async
OnFinish = Callable[["FinalState"], None | Awaitable[None]]

# Registry input accepted by Orchestra
HandlerMapping = Mapping[StateName, Handler]
