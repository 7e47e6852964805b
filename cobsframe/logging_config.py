"""structlog setup for the command-line codec.

Frame data owns stdout, so log entries default to stderr. Entries are JSON
unless ``json_output`` is turned off, in which case structlog's console
renderer is used.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def _parse_level(level: str) -> int:
    numeric_level = logging.getLevelNamesMapping().get(level.upper())
    if numeric_level is None:
        raise ValueError(f"Invalid log level: {level!r}")
    return numeric_level


def configure_logging(
    service_name: str,
    level: str = "INFO",
    *,
    stream: TextIO | None = None,
    json_output: bool = True,
) -> None:
    """Route structlog and stdlib logging to ``stream`` at ``level``.

    Events below ``level`` are dropped by the bound logger itself, and every
    event carries ``service=service_name``.
    """
    numeric_level = _parse_level(level)
    stream = sys.stderr if stream is None else stream

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    # framing.py logs through the stdlib
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(numeric_level)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)
