"""
log.py

Responsibility: console logging setup for the `emacs_builder` logger tree.
"""

from __future__ import annotations

import logging
import sys

RESET = "\033[0m"


class ColorFormatter(logging.Formatter):
    """Colors warnings and errors; progress messages stay plain."""

    COLORS = {
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        color = self.COLORS.get(record.levelno)
        return f"{color}{msg}{RESET}" if color else msg


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attach a single stderr handler to the package logger.

    Colors are only used when stderr is a terminal. Calling this more than once
    replaces the handler instead of stacking duplicates.
    """
    logger = logging.getLogger("emacs_builder")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter_cls = ColorFormatter if sys.stderr.isatty() else logging.Formatter
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter_cls("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
