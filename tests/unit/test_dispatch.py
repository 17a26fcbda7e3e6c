"""Unit tests for DispatchChannel and BufferedSink."""

from __future__ import annotations

import pytest

from orchestra import (
    CustomEvent,
    DispatchChannel,
    DispatchClosedError,
    HandlerResult,
    Orchestra,
)
from orchestra.dispatch import BufferedSink


class TestBufferedSink:
    """Test suite for BufferedSink."""

    @pytest.mark.asyncio
    async def test_drain_preserves_order(self) -> None:
        sink = BufferedSink()
        await sink(CustomEvent(name="a"))
        await sink(CustomEvent(name="b"))

        assert len(sink) == 2
        assert [e.name for e in sink.drain()] == ["a", "b"]
        assert len(sink) == 0


class TestDispatchChannel:
    """Test suite for DispatchChannel."""

    @pytest.mark.asyncio
    async def test_dispatch_records_event(self) -> None:
        sink = BufferedSink()
        dispatch = DispatchChannel("intent", sink)

        await dispatch("status", {"ok": True})

        (event,) = sink.drain()
        assert event.name == "status"
        assert event.data == {"ok": True}
        assert event.state == "intent"
        assert dispatch.count == 1

    @pytest.mark.asyncio
    async def test_data_defaults_to_none(self) -> None:
        sink = BufferedSink()
        await DispatchChannel("intent", sink)("ping")
        assert sink.drain()[0].data is None

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self) -> None:
        dispatch = DispatchChannel("intent", BufferedSink())
        with pytest.raises(ValueError):
            await dispatch("", {})
        assert dispatch.count == 0

    @pytest.mark.asyncio
    async def test_closed_channel_rejects_dispatch(self) -> None:
        dispatch = DispatchChannel("intent", BufferedSink())
        dispatch.close()

        with pytest.raises(DispatchClosedError) as exc_info:
            await dispatch("late", None)
        assert exc_info.value.state == "intent"
        assert exc_info.value.name == "late"

    def test_repr(self) -> None:
        dispatch = DispatchChannel("intent", BufferedSink())
        assert repr(dispatch) == "DispatchChannel(state='intent', count=0, open)"

    @pytest.mark.asyncio
    async def test_channel_scoped_to_one_step(self) -> None:
        """A channel captured in one step cannot emit into a later step."""
        captured: list[DispatchChannel] = []

        async def first(context, dispatch):
            captured.append(dispatch)
            return HandlerResult(next_state="second", context={})

        async def second(context, dispatch):
            await captured[0]("leak", None)
            return HandlerResult(context={})

        run = Orchestra({"first": first, "second": second}).create_run("first", {})
        with pytest.raises(DispatchClosedError):
            async for _ in run:
                pass

    @pytest.mark.asyncio
    async def test_fresh_channel_per_step(self) -> None:
        captured: list[DispatchChannel] = []

        async def loop(context, dispatch):
            captured.append(dispatch)
            if len(captured) < 2:
                return HandlerResult(next_state="loop", context={})
            return HandlerResult(context={})

        run = Orchestra({"loop": loop}).create_run("loop", {})
        async for _ in run:
            pass

        assert captured[0] is not captured[1]
        assert all(channel.closed for channel in captured)
