# src/mcp_fs_guard/errors.py
from typing import Optional


class FsGuardError(Exception):
    """Base class for exceptions raised by the filesystem guard.

    This is the root exception class for all errors that can occur when
    validating filesystem access. All other error classes in this module
    inherit from this.

    Examples:
        >>> try:
        ...     guard.check_path("~/Documents/notes.txt")
        ... except FsGuardError as e:
        ...     print(f"Guard error: {e}")
    """

    pass


class ConfigurationError(FsGuardError):
    """Raised when the resolved configuration cannot be used."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class PathError(FsGuardError):
    """Base class for path-related errors."""

    pass


class PathValidationError(PathError):
    """Raised when a path is malformed (empty, not a string, ...)."""

    pass


class FileNotFoundError(PathError):
    """Raised when a file is not found."""

    pass


class NotAFileError(PathError):
    """Raised when a path exists but is not a regular file."""

    pass


class PathSecurityError(PathError):
    """Error raised for security violations in path access.

    Provides standardized error messages for different types of security violations:
    - Access denied (general)
    - Outside allowed directories
    - Directory traversal attempts
    - Encoded traversal attempts
    - Symlink escapes

    Messages only ever repeat the path the caller supplied.
    """

    @classmethod
    def access_denied(
        cls, path: str, reason: Optional[str] = None
    ) -> "PathSecurityError":
        """Create access denied error.

        Args:
            path: Path that was denied
            reason: Optional reason for denial

        Returns:
            PathSecurityError with standardized message
        """
        msg = f"Access denied: {path}"
        if reason:
            msg += f" - {reason}"
        return cls(msg)

    @classmethod
    def outside_allowed(cls, path: str) -> "PathSecurityError":
        """Create error for path outside allowed directories."""
        return cls(f"Access denied: {path} is outside allowed directories")

    @classmethod
    def traversal_attempt(cls, path: str) -> "PathSecurityError":
        """Create error for directory traversal attempt."""
        return cls(f"Access denied: {path} - directory traversal not allowed")

    @classmethod
    def encoded_attempt(cls, path: str) -> "PathSecurityError":
        """Create error for a percent-encoded traversal attempt."""
        return cls(
            f"Access denied: {path} - encoded path traversal not allowed"
        )

    @classmethod
    def symlink_escape(cls, path: str) -> "PathSecurityError":
        """Create error for a symlink pointing outside allowed directories."""
        return cls(
            f"Access denied: {path} - symlink points outside allowed directories"
        )


class FileValidationError(FsGuardError):
    """Raised when a file fails the file-type policy."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        file_info: Optional[object] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.file_info = file_info
        self.reason = reason


class FileTooLargeError(FileValidationError):
    """Raised when a file exceeds the configured size limit."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        file_info: Optional[object] = None,
        size: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        super().__init__(
            message, path=path, file_info=file_info, reason="FILE_TOO_LARGE"
        )
        self.size = size
        self.limit = limit
