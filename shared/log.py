#!/usr/bin/env python3
"""
wsdrive Logging Configuration

Centralized logging setup for consistent formatting across the project.
Everything goes to stderr: stdout belongs to the frame stream.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting...")
    logger.error("Send failed", extra={"kind": "text", "origin": "user"})
"""

from __future__ import annotations
import logging
import os
import sys
from typing import Any, Optional, Union


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class GenericFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # Add frame context if available
        frame_context = []

        if hasattr(record, 'kind'):
            frame_context.append(f"kind={record.kind}")
        if hasattr(record, 'origin'):
            frame_context.append(f"origin={record.origin}")
        if hasattr(record, 'peer'):
            frame_context.append(f"peer={record.peer}")

        message = super().format(record)
        if frame_context:
            return f"[{' '.join(frame_context)}] {message}"
        return message


# ========================================
#           LOGGING CONFIGURATION
# ========================================

# Verbosity counts from the command line (-v, -vv, ...) mapped to levels.
# 0 is silent; anything >= BINARY_VERBOSITY also dumps frame payloads.
_VERBOSITY_LEVELS = {
    0: logging.CRITICAL + 1,
    1: logging.ERROR,
    2: logging.INFO,
    3: logging.DEBUG,
}
BINARY_VERBOSITY = 4

_loggers_configured = set()
_verbosity = 0


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def set_verbosity(verbosity: int) -> None:
    """
    Apply the command line verbosity count to every logger handed out so far
    and to the ones created afterwards.
    """
    global _verbosity
    _verbosity = max(0, verbosity)
    log_level = _level_for_verbosity(_verbosity)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(log_level)


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    _add_console_handler(logger, colored=True)
    log_file = os.getenv('WSDRIVE_LOG_FILE')
    if log_file:
        _add_file_handler(logger, log_file)

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    if level:
        return getattr(logging, level.upper(), logging.INFO)

    env_level = os.getenv('WSDRIVE_LOG_LEVEL')
    if env_level:
        return getattr(logging, env_level.upper(), logging.INFO)

    return _level_for_verbosity(_verbosity)


def _level_for_verbosity(verbosity: int) -> int:
    if verbosity >= BINARY_VERBOSITY:
        return logging.DEBUG
    return _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add stderr handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, log_file: str) -> None:
    """Add file handler, enabled through WSDRIVE_LOG_FILE"""

    handler = logging.FileHandler(log_file)

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if the stderr terminal supports color output"""

    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    if os.getenv("NO_COLOR") is not None:
        return False

    if sys.platform == "win32":
        # On modern Windows terminals, ANSI colors are supported
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True

# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def log_frame(logger: logging.Logger, level: str, message: str,
              payload: Optional[Union[str, bytes]] = None,
              **context: Any) -> None:
    """
    Log a frame event with structured context.

    At binary verbosity (-vvvv) the payload itself is appended as a hex dump.

    Example:
        log_frame(logger, "debug", "Sent frame", payload=frame.payload,
                  kind="binary", origin="user")
    """
    log_func = getattr(logger, level.lower())
    if payload is not None and _verbosity >= BINARY_VERBOSITY:
        raw = payload.encode("utf-8") if isinstance(payload, str) else payload
        message = f"{message} ({len(raw)} bytes: {raw.hex(' ')})"
    log_func(message, extra=context)
