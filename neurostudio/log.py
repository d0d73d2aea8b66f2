"""Logging configuration for NeuroStudio."""

from __future__ import annotations

import logging
import os
import sys

import structlog

DEFAULT_LEVEL = "INFO"


def configure_logging(level: str | None = None) -> None:
    """Install a human-readable console renderer on stderr.

    ``level`` defaults to ``$NEUROSTUDIO_LOG_LEVEL`` and then ``INFO``.
    """

    name = (level or os.environ.get("NEUROSTUDIO_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {name}")
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


__all__ = ["configure_logging"]
