"""Test configuration and fixtures."""

import logging
import os
from typing import Any, Dict, Iterator, List, Tuple

import pytest

from mcp_fs_guard.config import (
    CONFIG_FILE_ENV_VAR,
    ENV_VARS,
    SecurityLevel,
    SecurityPolicy,
)
from mcp_fs_guard.logging import PACKAGE_LOGGER

HOME = "/home/u"


@pytest.fixture(autouse=True)
def env_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from the developer's environment.

    Args:
        monkeypatch: Pytest monkeypatch fixture
    """
    for var in list(ENV_VARS) + [CONFIG_FILE_ENV_VAR]:
        # setenv first so teardown also drops values set by load_dotenv
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    monkeypatch.setenv("HOME", HOME)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Remove handlers installed by configure_logging()."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_mcp_fs_guard", False):
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(logging.NOTSET)


class LogRecorder:
    """Collects structured log callback invocations."""

    def __init__(self) -> None:
        self.records: List[Tuple[int, str, Dict[str, Any]]] = []

    def __call__(self, level: int, event: str, data: Dict[str, Any]) -> None:
        self.records.append((level, event, data))

    def events(self, name: str) -> List[Dict[str, Any]]:
        return [data for _, event, data in self.records if event == name]


@pytest.fixture
def on_log() -> LogRecorder:
    """Create a recording log callback."""
    return LogRecorder()


@pytest.fixture
def strict_policy() -> SecurityPolicy:
    """Strict policy with ~/Documents and ~/Desktop allowed."""
    return SecurityPolicy.for_directories(
        [os.path.join(HOME, "Documents"), os.path.join(HOME, "Desktop")],
        SecurityLevel.STRICT,
    )
