"""Structured logging for Orchestra runs.

Records emitted through :func:`get_logger` are plain event dicts until they
reach the stderr handler installed by :func:`configure_logging`; the handler's
formatter is the only place a record is rendered. Records from foreign stdlib
loggers (anyio, asyncio) go through the same formatter, so the output stays
uniform.

Environment:
    ORCHESTRA_LOG_FORMAT: ``json`` for one JSON object per line, anything
        else for console output.
    ORCHESTRA_LOG_LEVEL: Level name, ``INFO`` when unset or unknown.

Usage:
    from orchestra.logging import configure_logging, get_logger

    configure_logging()

    log = get_logger(__name__).bind(run_id="9f2c")
    log.info("state_entered", state="intent")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "bind_context",
    "clear_context",
]

LOG_FORMAT_ENV_VAR = "ORCHESTRA_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "ORCHESTRA_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _resolve_level(level: int | None) -> int:
    if level is not None:
        return level
    name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _enrich_chain() -> list[Processor]:
    """Processors that add fields to a record without rendering it."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _build_formatter(use_json: bool) -> structlog.stdlib.ProcessorFormatter:
    render: list[Processor]
    if use_json:
        render = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render = [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *render,
        ],
        foreign_pre_chain=_enrich_chain(),
    )


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Route structlog and stdlib records to a single stderr handler.

    Calling it again swaps the root handlers, so a test or an embedding
    application can switch format or level at any time. Stdout is left alone
    because encoded data streams may be written there.

    Args:
        force_json: Render JSON regardless of ``ORCHESTRA_LOG_FORMAT``.
        level: Explicit log level. Falls back to ``ORCHESTRA_LOG_LEVEL``.
    """
    use_json = force_json or os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"
    log_level = _resolve_level(level)

    # The chain is identical for both formats; only the handler renders
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_enrich_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(_build_formatter(use_json))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Attach key/value pairs to every record logged from the current task.

    Bindings live in contextvars, so they follow the task across ``await``
    points but do not leak into tasks started before the call.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop all bindings made with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()
