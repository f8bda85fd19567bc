"""Tests for structured logging and handler configuration."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import pytest

from mcp_fs_guard.config import SecurityPolicy, ServerSettings
from mcp_fs_guard.logging import (
    PACKAGE_LOGGER,
    LogEvent,
    LogLevel,
    _log,
    configure_logging,
)
from mcp_fs_guard.security import PathSecurityValidator


def _tagged(logger: logging.Logger) -> list:
    return [h for h in logger.handlers if getattr(h, "_mcp_fs_guard", False)]


def test_log_without_callback_is_noop() -> None:
    _log(None, LogLevel.INFO, LogEvent.ERROR, {"message": "ignored"})


def test_log_adds_standard_fields(on_log: Any) -> None:
    _log(
        on_log,
        LogLevel.WARNING,
        LogEvent.CONFIG_WARNING,
        {"message": "careful"},
        extra={"request_id": "r1"},
    )

    ((level, event, data),) = on_log.records
    assert level == logging.WARNING
    assert event == "config_warning"
    assert data["event"] == "config_warning"
    assert data["source"] == "mcp_fs_guard"
    assert data["message"] == "careful"
    assert data["request_id"] == "r1"
    assert "timestamp" in data


def test_default_callback_uses_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=PACKAGE_LOGGER)
    validator = PathSecurityValidator(SecurityPolicy.for_directories(["/data"]))

    validator.validate_path("/etc/passwd")

    assert "security_violation" in caplog.text
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_console_destination_writes_to_stderr() -> None:
    package_logger = configure_logging(ServerSettings(log_level="warn"))

    (handler,) = _tagged(package_logger)
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr
    assert package_logger.level == logging.WARNING


def test_file_destination(tmp_path: Path) -> None:
    log_file = tmp_path / "guard.log"
    settings = ServerSettings(
        log_destination="file", log_file=str(log_file), log_level="debug"
    )

    package_logger = configure_logging(settings)
    package_logger.debug("hello from the guard")
    for handler in _tagged(package_logger):
        handler.flush()

    (handler,) = _tagged(package_logger)
    assert isinstance(handler, logging.FileHandler)
    assert "hello from the guard" in log_file.read_text()


def test_syslog_destination() -> None:
    package_logger = configure_logging(
        ServerSettings(log_destination="syslog")
    )

    (handler,) = _tagged(package_logger)
    assert isinstance(handler, logging.handlers.SysLogHandler)


def test_reconfigure_replaces_handler() -> None:
    configure_logging(ServerSettings())
    package_logger = configure_logging(ServerSettings(log_level="error"))

    assert len(_tagged(package_logger)) == 1
    assert package_logger.level == logging.ERROR


def test_foreign_handlers_are_kept() -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    foreign = logging.NullHandler()
    package_logger.addHandler(foreign)
    try:
        configure_logging(ServerSettings())
        configure_logging(ServerSettings())
        assert foreign in package_logger.handlers
    finally:
        package_logger.removeHandler(foreign)


def test_failed_reconfigure_keeps_previous_handler(tmp_path: Path) -> None:
    package_logger = configure_logging(ServerSettings(log_level="warn"))
    (before,) = _tagged(package_logger)
    broken = ServerSettings(
        log_destination="file",
        log_file=str(tmp_path / "missing" / "guard.log"),
        log_level="debug",
    )

    with pytest.raises(OSError):
        configure_logging(broken)

    assert _tagged(package_logger) == [before]
    assert package_logger.level == logging.WARNING
