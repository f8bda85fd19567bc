# src/mcp_fs_guard/__init__.py
"""
mcp-fs-guard
============

Filesystem access mediation for an MCP-style filesystem server: layered
configuration, path admission control and file-type policy.

:noindex:
"""
from importlib.metadata import version

try:
    __version__ = version("mcp-fs-guard")
except Exception:
    __version__ = "unknown"

from .config import (
    ConfigSource,
    ConfigurationResolver,
    LogDestination,
    LogLevelName,
    PolicyHolder,
    ResolvedConfiguration,
    SecurityLevel,
    SecurityPolicy,
    ServerSettings,
    format_file_size,
    parse_file_size,
)
from .errors import (
    ConfigurationError,
    FileNotFoundError,
    FileTooLargeError,
    FileValidationError,
    FsGuardError,
    NotAFileError,
    PathError,
    PathSecurityError,
    PathValidationError,
)
from .file_validation import (
    FileInfo,
    FileRejection,
    FileTypeValidator,
    FileValidationOptions,
    FileValidationResult,
)
from .guard import FileCheck, FilesystemGuard
from .logging import configure_logging
from .security import (
    PathSecurityValidator,
    PathValidationResult,
    SecurityAuditLog,
    SecurityEvent,
    SecurityEventKind,
)
from .security_types import FileCategory

__all__ = [
    # Entry point
    "FilesystemGuard",
    "FileCheck",
    # Configuration
    "ConfigurationResolver",
    "ResolvedConfiguration",
    "ServerSettings",
    "SecurityPolicy",
    "PolicyHolder",
    "SecurityLevel",
    "LogLevelName",
    "LogDestination",
    "ConfigSource",
    "parse_file_size",
    "format_file_size",
    "configure_logging",
    # Path admission control
    "PathSecurityValidator",
    "PathValidationResult",
    "SecurityAuditLog",
    "SecurityEvent",
    "SecurityEventKind",
    # File-type policy
    "FileTypeValidator",
    "FileValidationOptions",
    "FileValidationResult",
    "FileInfo",
    "FileCategory",
    "FileRejection",
    # Exceptions
    "FsGuardError",
    "ConfigurationError",
    "PathError",
    "PathValidationError",
    "PathSecurityError",
    "FileNotFoundError",
    "NotAFileError",
    "FileValidationError",
    "FileTooLargeError",
]
