"""Logging setup shared by the CLI, the HTTP service and the job runner."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

_ROOT = "llmedit"
LEVEL_ENV_KEY = "LLMEDIT_LOG_LEVEL"

_CONSOLE_FORMAT = "[llmedit] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``llmedit`` or one of its children, e.g. ``llmedit.jobs``."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach console and optional file handlers to the ``llmedit`` logger.

    Console output always goes to stderr (or ``stream``) so that edited text
    printed on stdout stays clean. The file sink records everything at DEBUG,
    including prompts and raw process output, whatever the console level.
    """
    console_level = _console_level(verbose)
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # Repeated calls (tests, service reloads) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


def _console_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    override = os.getenv(LEVEL_ENV_KEY, "").strip().upper()
    level = logging.getLevelName(override) if override else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING


__all__ = ["LEVEL_ENV_KEY", "configure_logging", "get_logger"]
