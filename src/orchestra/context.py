"""Context merge policy.

A new context value is produced at every step by shallow-merging the handler's
partial update onto the previous context: keys in the update replace keys in
the previous value, absent keys are preserved, nested values are not merged.
The previous value is never mutated.

Supported context shapes:
- any ``Mapping`` (merged into a new ``dict``)
- dataclass instances (via ``dataclasses.replace``)
- pydantic models (via ``model_copy(update=...)``)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from orchestra.exceptions import ContextMergeError

ContextT = TypeVar("ContextT")


def merge_context(previous: ContextT, update: Mapping[str, Any] | None) -> ContextT:
    """Shallow-merge ``update`` onto ``previous`` and return the new context.

    Example:
        >>> merge_context({"a": 1, "b": 2}, {"b": 3})
        {'a': 1, 'b': 3}
    """
    if update is None:
        update = {}
    if not isinstance(update, Mapping):
        raise ContextMergeError(
            type(previous).__name__,
            f"update must be a mapping, got {type(update).__name__}",
        )

    if isinstance(previous, Mapping):
        return {**previous, **update}  # type: ignore[return-value]

    if isinstance(previous, BaseModel):
        unknown = set(update) - set(type(previous).model_fields)
        if unknown and previous.model_config.get("extra") != "allow":
            raise ContextMergeError(
                type(previous).__name__, f"unknown fields {sorted(unknown)}"
            )
        return previous.model_copy(update=dict(update))

    if dataclasses.is_dataclass(previous) and not isinstance(previous, type):
        try:
            return dataclasses.replace(previous, **update)
        except TypeError as e:
            raise ContextMergeError(type(previous).__name__, str(e)) from e

    raise ContextMergeError(type(previous).__name__, "unsupported context type")
