"""Centralized logging setup for the declaration scanner.

The camera stream produces many frames per second, so per-frame chatter
is kept at DEBUG and only session-level outcomes (auto-commits, recognition
failures) surface at INFO and above.
"""

import logging
import sys
from typing import TextIO

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger with the scanner's standard format.

    Calling this more than once leaves the existing handlers in place.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        stream: Output stream for the handler. Defaults to stdout.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
