"""Tests for the Orchestra exception hierarchy."""

from __future__ import annotations

import pytest

from orchestra.exceptions import (
    ConfigError,
    ContextMergeError,
    DispatchClosedError,
    EncodingError,
    EngineError,
    HandlerResultError,
    OrchestraError,
    RunConsumedError,
    StateNotFoundError,
    UnrecognizedChunkError,
)


class TestHierarchy:
    """Every Orchestra exception derives from OrchestraError."""

    @pytest.mark.parametrize(
        ("error", "parent"),
        [
            (ConfigError("bad"), OrchestraError),
            (StateNotFoundError("x"), EngineError),
            (HandlerResultError("x", None), EngineError),
            (ContextMergeError("int"), EngineError),
            (RunConsumedError("abc"), EngineError),
            (DispatchClosedError("x", "late"), EngineError),
            (UnrecognizedChunkError("mystery"), EncodingError),
            (EncodingError("bad"), OrchestraError),
        ],
    )
    def test_parent(self, error: OrchestraError, parent: type[Exception]) -> None:
        assert isinstance(error, parent)
        assert isinstance(error, OrchestraError)


class TestMessages:
    """Error messages and attributes."""

    def test_message_attribute(self) -> None:
        error = OrchestraError("something broke")
        assert error.message == "something broke"
        assert str(error) == "something broke"

    def test_state_not_found(self) -> None:
        error = StateNotFoundError("plan", ("intent", "execute"))
        assert error.state == "plan"
        assert str(error) == (
            "State 'plan' not found. Registered states: intent, execute"
        )

    def test_state_not_found_without_registry(self) -> None:
        assert str(StateNotFoundError("plan")) == "State 'plan' not found"

    def test_handler_result_error(self) -> None:
        error = HandlerResultError("intent", 42)
        assert error.result == 42
        assert "returned int" in str(error)

    def test_unrecognized_chunk(self) -> None:
        error = UnrecognizedChunkError("mystery", {"type": "mystery"})
        assert error.chunk_type == "mystery"
        assert error.chunk == {"type": "mystery"}
        assert str(error) == "Unknown chunk type: 'mystery'"

    def test_config_error_fields(self) -> None:
        error = ConfigError("Invalid", field="handoff_marker", value="")
        assert error.field == "handoff_marker"
        assert error.value == ""
