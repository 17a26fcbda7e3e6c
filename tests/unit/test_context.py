"""Unit tests for the context merge policy."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel

from orchestra import ContextMergeError, merge_context


@dataclass(frozen=True)
class ChatContext:
    query: str
    messages: list[str] = field(default_factory=list)


class ModelContext(BaseModel):
    query: str
    count: int = 0


class TestMergeMappings:
    """Merging onto mapping contexts."""

    def test_update_replaces_and_preserves(self) -> None:
        assert merge_context({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_new_keys_added(self) -> None:
        assert merge_context({"a": 1}, {"c": 3}) == {"a": 1, "c": 3}

    def test_no_deep_merge(self) -> None:
        merged = merge_context({"nested": {"x": 1, "y": 2}}, {"nested": {"x": 9}})
        assert merged == {"nested": {"x": 9}}

    def test_previous_not_mutated(self) -> None:
        previous = {"a": 1}
        merged = merge_context(previous, {"a": 2})
        assert previous == {"a": 1}
        assert merged is not previous

    @pytest.mark.parametrize("update", [None, {}])
    def test_empty_update_returns_copy(self, update: dict | None) -> None:
        previous = {"a": 1}
        merged = merge_context(previous, update)
        assert merged == previous
        assert merged is not previous

    def test_non_mapping_update_rejected(self) -> None:
        with pytest.raises(ContextMergeError, match="update must be a mapping"):
            merge_context({"a": 1}, ["a"])  # type: ignore[arg-type]


class TestMergeDataclasses:
    """Merging onto dataclass contexts."""

    def test_replace_fields(self) -> None:
        previous = ChatContext(query="hi", messages=["m1"])
        merged = merge_context(previous, {"messages": ["m1", "m2"]})

        assert merged == ChatContext(query="hi", messages=["m1", "m2"])
        assert previous.messages == ["m1"]

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ContextMergeError, match="ChatContext"):
            merge_context(ChatContext(query="hi"), {"bogus": 1})


class TestMergePydanticModels:
    """Merging onto pydantic model contexts."""

    def test_model_copy_update(self) -> None:
        previous = ModelContext(query="hi")
        merged = merge_context(previous, {"count": 2})

        assert merged.count == 2
        assert merged.query == "hi"
        assert previous.count == 0

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ContextMergeError, match="unknown fields"):
            merge_context(ModelContext(query="hi"), {"bogus": 1})


def test_unsupported_context_type() -> None:
    with pytest.raises(ContextMergeError) as exc_info:
        merge_context(42, {"a": 1})
    assert exc_info.value.context_type == "int"
