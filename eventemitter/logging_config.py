"""Structured logging configuration for eventemitter.

Emitters log their lifecycle (listeners added/removed, streams opened,
channels closed) at DEBUG through structlog, rendered either for the
console or as JSON lines.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
    colors: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: One of ``LOG_LEVELS`` (case-insensitive)
        json_output: Render JSON lines instead of console output
        log_file: Append to this file instead of stderr
        colors: Use colors in console output

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {LOG_LEVELS}")

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)

    # force=True closes the handlers (and log files) of any earlier call
    logging.basicConfig(
        format="%(message)s",
        handlers=[handler],
        level=getattr(logging, level),
        force=True,
    )

    processors = _shared_processors()
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def reset_logging() -> None:
    """Close handlers installed by ``configure_logging`` and restore defaults."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger (typically ``get_logger(__name__)``).

    The logger always writes through stdlib ``logging``, so the root level
    decides what is shown: with logging left unconfigured, the emitter's
    DEBUG lifecycle events are dropped instead of printed. Processors come
    from ``configure_logging`` once it has run.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
