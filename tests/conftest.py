from __future__ import annotations

import logging
import os
from collections.abc import Generator

import pytest

# Register fixture plugins from tests/fixtures/
pytest_plugins = [
    "tests.fixtures.streams",
]


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test environment.

    Runs automatically for every test so log output goes to stderr at
    WARNING level and does not mix with test stdout.
    """
    from orchestra.logging import clear_context, configure_logging

    configure_logging(level=logging.WARNING)
    yield
    clear_context()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all ORCHESTRA_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("ORCHESTRA_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def counter_handlers() -> dict[str, object]:
    """Three-state registry start -> middle -> end, each incrementing count."""
    from orchestra import HandlerResult

    async def start(context, dispatch):
        await dispatch("custom-event", {"message": "Starting"})
        return HandlerResult(
            next_state="middle", context={"count": context["count"] + 1}
        )

    async def middle(context, dispatch):
        return HandlerResult(next_state="end", context={"count": context["count"] + 1})

    async def end(context, dispatch):
        return HandlerResult(context={"count": context["count"] + 1, "message": "Done"})

    return {"start": start, "middle": middle, "end": end}
