"""Logging setup for the ingestion pipeline.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`configure_logging` once to attach a stderr handler to the package
logger.
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "freelance_ingest"

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int = logging.INFO) -> logging.Handler:
    """Attach a stderr handler to the package logger and return it.

    Calling this twice replaces the previously installed handler instead of
    stacking duplicates.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_freelance_ingest", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT))
    handler._freelance_ingest = True  # type: ignore[attr-defined]

    logger.setLevel(level)
    logger.addHandler(handler)
    return handler


__all__ = ["LOGGER_NAME", "configure_logging"]
