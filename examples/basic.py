"""Demo of an intent -> plan handoff driven by a scripted model.

The "model" here replays canned chunks so the demo runs offline. The intent
agent calls a handoff tool, which moves the run to the planning agent.
Run with: python examples/basic.py [--encode]
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from orchestra import (
    HandlerResult,
    Orchestra,
    create_tool_response,
    encode_run,
    process_stream,
)
from orchestra.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def _resolved(value: Any) -> Any:
    return value


async def _replay(chunks: list[dict[str, Any]]) -> AsyncIterator[dict[str, Any]]:
    for chunk in chunks:
        await asyncio.sleep(0.05)
        yield chunk


@dataclass
class ScriptedStream:
    finish_reason: Any
    tool_calls: Any
    response: Any
    full_stream: Any


def scripted_stream(
    chunks: list[dict[str, Any]],
    finish_reason: str,
    tool_calls: list[dict[str, Any]] | None = None,
) -> ScriptedStream:
    text = "".join(c.get("textDelta", "") for c in chunks if c["type"] == "text-delta")
    messages = [{"role": "assistant", "content": text}] if text else []
    return ScriptedStream(
        finish_reason=_resolved(finish_reason),
        tool_calls=_resolved(tool_calls or []),
        response=_resolved({"messages": messages}),
        full_stream=_replay(chunks),
    )


async def intent(context: dict[str, Any], dispatch: Any) -> HandlerResult:
    handoff = {
        "type": "tool-call",
        "toolCallId": "call-1",
        "toolName": "handoffToPlanningAgent",
        "args": {"name": "planner"},
    }
    summary = await process_stream(
        scripted_stream(
            [
                {"type": "text-delta", "textDelta": "Let me get the planner."},
                handoff,
                {"type": "finish", "finishReason": "tool-calls"},
            ],
            finish_reason="tool-calls",
            tool_calls=[handoff],
        ),
        dispatch,
    )

    if summary.finish_reason == "tool-calls":
        for tool_call in summary.tool_calls:
            if tool_call["toolName"] == "handoffToPlanningAgent":
                return HandlerResult(
                    next_state="plan",
                    context={
                        "messages": [
                            *context["messages"],
                            *summary.messages,
                            create_tool_response(tool_call, "Handing off to planner"),
                        ]
                    },
                )

    return HandlerResult(
        context={"messages": [*context["messages"], *summary.messages]}
    )


async def plan(context: dict[str, Any], dispatch: Any) -> HandlerResult:
    summary = await process_stream(
        scripted_stream(
            [
                {"type": "text-delta", "textDelta": "1. Pick a date. "},
                {"type": "text-delta", "textDelta": "2. Invite friends."},
                {"type": "finish", "finishReason": "stop"},
            ],
            finish_reason="stop",
        ),
        dispatch,
    )
    return HandlerResult(
        context={"messages": [*context["messages"], *summary.messages]}
    )


orchestra = Orchestra({"intent": intent, "plan": plan})


async def main(encode: bool) -> None:
    run = orchestra.create_run(
        "intent",
        {"query": "Help me plan a party", "messages": []},
        on_finish=lambda final: logger.info("run_finished", state=final.state),
    )

    if encode:
        async for record in encode_run(run):
            sys.stdout.write(record.decode("utf-8"))
    else:
        async for event in run:
            print(event.to_dict())

    print("Final state:", run.history.latest)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main(encode="--encode" in sys.argv))
