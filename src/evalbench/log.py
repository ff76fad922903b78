"""structlog configuration for evalbench.

Modules obtain loggers with ``structlog.get_logger()`` and emit dotted
event names (``simulation.turn_completed``, ``batch.entry_failed``).
The CLI calls configure_logging() once at startup.
"""

from __future__ import annotations

import logging
import sys

import structlog

LOG_FORMATS: tuple[str, ...] = ("console", "json")


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger so a swapped stream is honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(log_format: str = "console", level: str = "info") -> None:
    """Configure structlog processors and the output renderer.

    Args:
        log_format: "console" for human-readable output, "json" for
            one JSON object per line.
        level: Minimum level name to emit (debug, info, warning, error).

    Raises:
        ValueError: If log_format or level is not recognised.
    """
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        raise ValueError(
            f"Invalid log format: {log_format!r}. Must be one of {', '.join(LOG_FORMATS)}."
        )

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}.")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
