"""Process-wide logger hook used by the client library."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from enum import Enum

LOG_TAG = "AttestatationClientLib"


class LogLevel(Enum):
    ERROR = "Error"
    WARN = "Warn"
    INFO = "Info"
    DEBUG = "Debug"


class AttestationLogger(ABC):
    """Receiver of the library's log records."""

    @abstractmethod
    def log(self, tag, level, function, line, message):
        """Record one message with its tag, level and origin."""


_logger: AttestationLogger | None = None


def set_logger(logger):
    """Install the library logger; a logger already installed is kept."""
    global _logger
    if _logger is None:
        _logger = logger


def get_logger():
    """Return the installed logger, or None."""
    return _logger


def emit(level, message):
    """Send a message to the installed logger, tagged with the caller's function and line."""
    logger = _logger
    if logger is None:
        return
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    try:
        function = caller.f_code.co_name if caller is not None else ""
        line = caller.f_lineno if caller is not None else 0
    finally:
        del frame, caller
    logger.log(LOG_TAG, LogLevel(level), function, line, message)