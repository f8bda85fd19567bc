"""Standardized logging for the filesystem guard."""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

if TYPE_CHECKING:
    from .config import ServerSettings

# Type alias for log callback function
LogCallback = Callable[[int, str, Dict[str, Any]], None]

# Root logger for the package; handlers are attached by configure_logging()
PACKAGE_LOGGER = "mcp_fs_guard"

# Create module logger
logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class LogEvent(Enum):
    """Standard event types for structured logging."""

    # Error events
    ERROR = "error"

    # Configuration lifecycle events
    CONFIG_RESOLVED = "config_resolved"
    CONFIG_RELOADED = "config_reloaded"
    CONFIG_ERROR = "config_error"
    CONFIG_WARNING = "config_warning"

    # Validation events
    PATH_VALIDATION = "path_validation"
    FILE_VALIDATION = "file_validation"
    SECURITY_VIOLATION = "security_violation"


# Config log level names -> logging levels ("warn" is the config spelling)
_LEVEL_NAMES: Dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _default_log_callback(
    level: int, event: str, data: Dict[str, Any]
) -> None:
    """Default logging callback that uses the standard logging module."""
    logger.log(level, f"{event}: {data}")


def _log(
    on_log: Optional[LogCallback],
    level: LogLevel,
    event: LogEvent,
    details: Dict[str, Any],
    *,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Unified logging with structured data.

    Args:
        on_log: Optional callback for external logging
        level: Log level from LogLevel enum
        event: Event type from LogEvent enum
        details: Event-specific details
        extra: Optional additional context
    """
    if on_log:  # Only log if callback is provided
        data = {
            "event": event.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": "mcp_fs_guard",
            **details,
        }
        if extra:
            data.update(extra)
        on_log(level.value, event.value, data)


def _build_handler(settings: "ServerSettings") -> logging.Handler:
    destination = settings.log_destination.value
    if destination == "file" and settings.log_file:
        return logging.FileHandler(
            os.path.expanduser(settings.log_file), encoding="utf-8"
        )
    if destination == "syslog":
        address: Any = "/dev/log" if os.path.exists("/dev/log") else (
            "localhost",
            logging.handlers.SYSLOG_UDP_PORT,
        )
        return logging.handlers.SysLogHandler(address=address)
    # stdout carries the tool protocol, so console output goes to stderr
    return logging.StreamHandler(sys.stderr)


def configure_logging(settings: "ServerSettings") -> logging.Logger:
    """Attach a handler to the package logger according to the settings.

    Calling this again (e.g. after a reload) replaces the handler that was
    installed previously instead of stacking a second one. The new handler
    is built first, so a failure leaves the previous one in place.

    Args:
        settings: Resolved server settings

    Returns:
        The configured package logger

    Raises:
        OSError: If the handler cannot be created (e.g. the log file's
            directory does not exist)
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    handler = _build_handler(settings)
    handler._mcp_fs_guard = True  # type: ignore[attr-defined]
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )

    for previous in list(package_logger.handlers):
        if getattr(previous, "_mcp_fs_guard", False):
            package_logger.removeHandler(previous)
            previous.close()
    package_logger.addHandler(handler)
    package_logger.setLevel(
        _LEVEL_NAMES.get(settings.log_level.value, logging.INFO)
    )
    return package_logger
