"""Run loop for Orchestra state machines.

An ``Orchestra`` is an immutable registry of handlers keyed by state name.
``Orchestra.create_run`` returns a single-use ``Run`` whose event sequence is
generated lazily: nothing executes until the consumer pulls the next event.

Example:
    ```python
    orchestra = Orchestra(
        {
            "start": start_handler,
            "end": end_handler,
        }
    )

    run = orchestra.create_run("start", {"count": 0})
    async for event in run:
        print(event)

    print(run.history.latest)
    ```
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from types import MappingProxyType
from typing import Any

from orchestra.config import OrchestraConfig
from orchestra.context import merge_context
from orchestra.dispatch import BufferedSink, DispatchChannel
from orchestra.events import (
    CustomEvent,
    OrchestraEvent,
    StateCompletion,
    StateTransition,
)
from orchestra.exceptions import RunConsumedError, StateNotFoundError
from orchestra.history import FinalState, HistoryEntry, RunHistory
from orchestra.logging import get_logger
from orchestra.results import HandlerResult, coerce_result
from orchestra.types import Handler, HandlerMapping, OnFinish

logger = get_logger(__name__)

# Marks the end of a live step on the relay queue
_STEP_DONE = object()


async def _call_handler(
    handler: Handler, context: Any, dispatch: DispatchChannel
) -> Any:
    result = handler(context, dispatch)
    if inspect.isawaitable(result):
        result = await result
    return result


class Orchestra:
    """Immutable registry of state handlers.

    Handler existence is only checked when a run is about to enter a state,
    so registries may name next states that are registered under a different
    orchestra or never reached.

    Attributes:
        handlers: Read-only mapping of state name to handler.
        config: Settings applied to every run created from this orchestra.
    """

    def __init__(
        self,
        handlers: HandlerMapping,
        *,
        config: OrchestraConfig | None = None,
    ) -> None:
        """Initialize the orchestra.

        Args:
            handlers: Mapping of state name to handler. Copied at construction.
            config: Optional settings; defaults to ``OrchestraConfig()``.

        Raises:
            TypeError: If a handler is not callable or a name is not a string.
        """
        for name, handler in handlers.items():
            if not isinstance(name, str):
                raise TypeError(f"State names must be strings, got {name!r}")
            if not callable(handler):
                raise TypeError(
                    f"Handler for state '{name}' must be callable, "
                    f"got {type(handler).__name__}"
                )
        self._handlers: Mapping[str, Handler] = MappingProxyType(dict(handlers))
        self._config = config or OrchestraConfig()

    @property
    def handlers(self) -> Mapping[str, Handler]:
        return self._handlers

    @property
    def states(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    @property
    def config(self) -> OrchestraConfig:
        return self._config

    def get_handler(self, state: str | None) -> Handler:
        """Look up the handler for ``state``.

        Raises:
            StateNotFoundError: If no handler is registered under ``state``.
        """
        if state is None or state not in self._handlers:
            raise StateNotFoundError(state, self.states)
        return self._handlers[state]

    def create_run(
        self,
        agent: str | None = None,
        context: Any = None,
        *,
        on_finish: OnFinish | None = None,
    ) -> Run:
        """Create a run starting at ``agent`` with the given initial context.

        Args:
            agent: Starting state. Defaults to the first registered state.
            context: Initial context. Defaults to an empty dict.
            on_finish: Called (and awaited) with the terminal history entry.

        Returns:
            A Run that has not started executing yet.
        """
        if not agent and self._handlers:
            agent = next(iter(self._handlers))
        return Run(
            self,
            agent=agent,
            context={} if context is None else context,
            on_finish=on_finish,
        )


class Run:
    """One execution of an orchestra, from a starting state to termination.

    A run owns its history and produces exactly one event sequence. It is
    single-use: once iteration has started, iterating again raises
    ``RunConsumedError``.

    Attributes:
        run_id: Unique identifier used to correlate log records.
        history: Live, read-only view of recorded history entries.
    """

    def __init__(
        self,
        orchestra: Orchestra,
        *,
        agent: str | None,
        context: Any,
        on_finish: OnFinish | None = None,
    ) -> None:
        self.run_id = uuid.uuid4().hex
        self._orchestra = orchestra
        self._start_state = agent
        self._initial_context = context
        self._on_finish = on_finish
        self._history = RunHistory()
        self._final_state: FinalState | None = None
        self._events: AsyncIterator[OrchestraEvent] | None = None
        self._iterated = False
        self._exhausted = False
        # Strong references to live handler tasks abandoned by the consumer
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def history(self) -> RunHistory:
        return self._history

    @property
    def final_state(self) -> FinalState | None:
        return self._final_state

    @property
    def completed(self) -> bool:
        return self._final_state is not None

    @property
    def events(self) -> AsyncIterator[OrchestraEvent]:
        """The run's event sequence. The same generator is returned each time.

        Raises:
            RunConsumedError: If the sequence already ran to its end or was
                closed.
        """
        if self._exhausted:
            raise RunConsumedError(self.run_id)
        if self._events is None:
            self._events = self._generate()
        return self._events

    def __aiter__(self) -> AsyncIterator[OrchestraEvent]:
        if self._iterated:
            raise RunConsumedError(self.run_id)
        self._iterated = True
        return self.events

    async def aclose(self) -> None:
        """Stop the run. An in-flight handler is not interrupted."""
        if self._events is not None:
            await self._events.aclose()  # type: ignore[attr-defined]
        self._exhausted = True

    async def _generate(self) -> AsyncIterator[OrchestraEvent]:
        self._iterated = True
        log = logger.bind(run_id=self.run_id)
        config = self._orchestra.config
        state = self._start_state
        context = self._initial_context
        steps = 0

        log.debug("run_started", state=state)

        try:
            while True:
                try:
                    handler = self._orchestra.get_handler(state)
                except StateNotFoundError:
                    log.error("state_not_found", state=state, steps=steps)
                    raise
                assert state is not None

                self._history._append(HistoryEntry(state=state, context=context))
                steps += 1
                log.debug("state_entered", state=state, step=steps)

                yield StateTransition(from_state=state, context=context)

                if config.live_custom_events:
                    step_events = self._execute_live(handler, state, context)
                else:
                    step_events = self._execute_buffered(handler, state, context)

                outcome: HandlerResult | None = None
                try:
                    async with aclosing(step_events):
                        async for item in step_events:
                            if isinstance(item, HandlerResult):
                                outcome = item
                            else:
                                yield item
                except Exception as e:
                    log.error(
                        "handler_failed",
                        state=state,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise
                assert outcome is not None

                context = merge_context(context, outcome.context)

                if outcome.next_state:
                    log.debug("state_transition", state=state, to=outcome.next_state)
                    yield StateTransition(
                        from_state=state,
                        to_state=outcome.next_state,
                        context=context,
                    )
                    state = outcome.next_state
                    continue

                final_state = HistoryEntry(
                    state=state, context=context, terminal=True
                )
                self._history._append(final_state)
                self._final_state = final_state

                yield StateCompletion(state=state, context=context)

                if self._on_finish is not None:
                    result = self._on_finish(final_state)
                    if inspect.isawaitable(result):
                        await result

                log.info("run_completed", state=state, steps=steps)
                return
        finally:
            self._exhausted = True

    async def _execute_buffered(
        self, handler: Handler, state: str, context: Any
    ) -> AsyncIterator[CustomEvent | HandlerResult]:
        """Run a handler, then yield its dispatched events and its result."""
        sink = BufferedSink()
        dispatch = DispatchChannel(state, sink)
        error: Exception | None = None
        raw: Any = None
        try:
            raw = await _call_handler(handler, context, dispatch)
        except Exception as e:
            error = e
        finally:
            dispatch.close()

        for event in sink.drain():
            yield event
        if error is not None:
            raise error
        yield coerce_result(state, raw)

    async def _execute_live(
        self, handler: Handler, state: str, context: Any
    ) -> AsyncIterator[CustomEvent | HandlerResult]:
        """Run a handler as a task, yielding events as soon as dispatched."""
        queue: asyncio.Queue[Any] = asyncio.Queue()
        dispatch = DispatchChannel(state, queue.put)

        async def invoke() -> Any:
            try:
                return await _call_handler(handler, context, dispatch)
            finally:
                dispatch.close()
                queue.put_nowait(_STEP_DONE)

        task = asyncio.create_task(invoke(), name=f"orchestra-{self.run_id}-{state}")
        try:
            while (item := await queue.get()) is not _STEP_DONE:
                yield item
            raw = await task
        finally:
            if not task.done():
                logger.debug("handler_left_running", run_id=self.run_id, state=state)
                self._pending.add(task)
                task.add_done_callback(self._forget_task)

        yield coerce_result(state, raw)

    def _forget_task(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "abandoned_handler_failed",
                run_id=self.run_id,
                error=str(task.exception()),
            )
