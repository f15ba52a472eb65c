"""Logging utilities for mcq commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, TextIO

_LOGGER_NAME = "mcq"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# 0=off, 1=basic, 2=detailed, 3=verbose
VERBOSITY_LEVELS = {
    0: logging.CRITICAL + 10,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the mcq hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def log_fields(message: str, **fields: Any) -> str:
    """Append ``key=value`` pairs to a log message."""
    if not fields:
        return message
    rendered = " ".join(f"{key}={value}" for key, value in fields.items())
    return f"{message} {rendered}"


def trace(logger: logging.Logger, message: str, **fields: Any) -> None:
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, log_fields(message, **fields))


def configure_logging(
    *,
    verbosity: int = 0,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure the mcq logger for the requested verbosity tier."""
    level = VERBOSITY_LEVELS.get(max(0, min(verbosity, 3)), VERBOSITY_LEVELS[0])
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[mcq] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def mask_secret(secret: str | None) -> str:
    """Render a credential safely for logs and status output."""
    if not secret:
        return "not set"
    if len(secret) <= 4:
        return "***"
    return "***" + secret[-4:]


__all__ = [
    "TRACE",
    "VERBOSITY_LEVELS",
    "configure_logging",
    "get_logger",
    "log_fields",
    "mask_secret",
    "trace",
]
