"""Single entry point for tool handlers.

Tool handlers (read, write, list, copy, delete) call :class:`FilesystemGuard`
before touching the disk. The guard owns the policy holder, both validators
and the shared audit log, and turns rejected results into typed errors:

    >>> guard = FilesystemGuard.from_resolver(ConfigurationResolver())
    >>> path = guard.check_path("~/Documents/notes.txt")
    >>> check = guard.check_file("~/Documents/notes.txt", must_exist=True)

Security Notes:
    - Every path goes through admission control before the file-type policy
    - Error messages only repeat the path the caller supplied
    - ``reload()`` swaps the policy atomically; in-flight checks keep the
      snapshot they started with
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import (
    ConfigurationResolver,
    PolicyHolder,
    ResolvedConfiguration,
    SecurityPolicy,
)
from .errors import (
    ConfigurationError,
    FileNotFoundError,
    FileTooLargeError,
    FileValidationError,
    NotAFileError,
    PathSecurityError,
)
from .file_validation import (
    FileInfo,
    FileRejection,
    FileTypeValidator,
    FileValidationOptions,
    FileValidationResult,
)
from .logging import (
    LogCallback,
    LogEvent,
    LogLevel,
    _default_log_callback,
    _log,
    configure_logging,
)
from .security import (
    PathSecurityValidator,
    PathValidationResult,
    SecurityAuditLog,
    SecurityEvent,
    SecurityEventKind,
)
from .security_types import FileValidatorProtocol, PathValidatorProtocol


@dataclass(frozen=True)
class FileCheck:
    """An admitted file: canonical path, derived facts and warnings."""

    path: str
    info: FileInfo
    warnings: Tuple[str, ...] = ()


class FilesystemGuard:
    """Facade over path admission control and the file-type policy."""

    def __init__(
        self,
        policy: SecurityPolicy,
        resolver: Optional[ConfigurationResolver] = None,
        configuration: Optional[ResolvedConfiguration] = None,
        on_log: Optional[LogCallback] = _default_log_callback,
        manage_logging: bool = False,
    ) -> None:
        """Initialize the guard.

        Args:
            policy: Initial policy snapshot
            resolver: Resolver used by :meth:`reload`
            configuration: Resolved configuration the policy came from
            on_log: Structured log callback shared by both validators
            manage_logging: Configure package log handlers from the settings
                on start and on every reload
        """
        self._resolver = resolver
        self._configuration = configuration
        self._manage_logging = manage_logging
        self._on_log = on_log
        self._holder = PolicyHolder(policy)
        self._audit_log = SecurityAuditLog()
        self._path_validator = PathSecurityValidator(
            self._holder, self._audit_log, on_log
        )
        self._file_validator = FileTypeValidator(self._holder, on_log)
        if manage_logging and configuration is not None:
            configure_logging(configuration.settings)

    @classmethod
    def from_resolver(
        cls,
        resolver: ConfigurationResolver,
        on_log: Optional[LogCallback] = _default_log_callback,
        manage_logging: bool = False,
    ) -> "FilesystemGuard":
        """Create a guard from a freshly resolved configuration."""
        configuration = resolver.resolve()
        return cls(
            configuration.policy,
            resolver=resolver,
            configuration=configuration,
            on_log=on_log,
            manage_logging=manage_logging,
        )

    @property
    def policy(self) -> SecurityPolicy:
        return self._holder.policy

    @property
    def configuration(self) -> Optional[ResolvedConfiguration]:
        return self._configuration

    @property
    def path_validator(self) -> PathValidatorProtocol:
        return self._path_validator

    @property
    def file_validator(self) -> FileValidatorProtocol:
        return self._file_validator

    def reload(self) -> ResolvedConfiguration:
        """Re-resolve the configuration and swap in the new policy.

        A log handler that cannot be rebuilt is reported as a configuration
        error; the previous handler stays active and the new policy is kept.

        Raises:
            ConfigurationError: If the guard was built without a resolver
        """
        if self._resolver is None:
            raise ConfigurationError(
                "Cannot reload: guard was created without a configuration resolver"
            )
        configuration = self._resolver.reload(self._holder)
        self._configuration = configuration
        if self._manage_logging:
            try:
                configure_logging(configuration.settings)
            except OSError as e:
                _log(
                    self._on_log,
                    LogLevel.ERROR,
                    LogEvent.CONFIG_ERROR,
                    {"message": f"Failed to configure logging: {e}"},
                )
        return configuration

    def validate_path(self, path: object) -> PathValidationResult:
        return self._path_validator.validate_path(path)

    def validate_file(
        self, path: str, options: Optional[FileValidationOptions] = None
    ) -> FileValidationResult:
        return self._file_validator.validate_file(path, options)

    def check_path(self, path: object, purpose: str = "access") -> str:
        """Admit a path or raise.

        Returns:
            Canonical path

        Raises:
            PathSecurityError: On traversal, encoding, containment or
                symlink violations
            PathValidationError: On malformed input
        """
        return self._path_validator.require_path(path, purpose)

    def check_file(
        self,
        path: object,
        options: Optional[FileValidationOptions] = None,
        must_exist: bool = False,
        purpose: str = "access",
    ) -> FileCheck:
        """Admit a path and run the file-type policy on it.

        Args:
            path: Caller-supplied path
            options: Optional file validation overrides
            must_exist: Require an existing regular file (reads)
            purpose: Description of intended access (for error messages)

        Returns:
            FileCheck for the admitted file

        Raises:
            PathSecurityError: If admission fails or the path is a symlink
                while symlink following is disabled
            PathValidationError: On malformed input
            FileNotFoundError: If ``must_exist`` and nothing is there
            NotAFileError: If ``must_exist`` and the path is not a file
            FileValidationError: If the file-type policy rejects the file
        """
        resolved = self.check_path(path, purpose)
        shown = str(path)
        policy = self._holder.policy

        if not policy.follow_symlinks and os.path.islink(resolved):
            self._path_validator.record_event(
                SecurityEventKind.PERMISSION_DENIED, shown, resolved
            )
            raise PathSecurityError.access_denied(
                shown, "symbolic links are not followed"
            )

        if must_exist:
            if not os.path.exists(resolved):
                raise FileNotFoundError(f"File not found: {shown}")
            if not os.path.isfile(resolved):
                raise NotAFileError(f"Path is not a file: {shown}")

        result = self._file_validator.validate_file(resolved, options)
        if not result.is_valid:
            message = result.error or "File rejected"
            if result.reason is FileRejection.FILE_TOO_LARGE:
                limit = (
                    options.max_size
                    if options is not None and options.max_size is not None
                    else policy.max_file_size
                )
                raise FileTooLargeError(
                    message,
                    path=shown,
                    file_info=result.file_info,
                    size=result.file_info.size,
                    limit=limit,
                )
            raise FileValidationError(
                message,
                path=shown,
                file_info=result.file_info,
                reason=result.reason.value if result.reason else None,
            )
        return FileCheck(
            path=resolved,
            info=result.file_info,
            warnings=tuple(result.warnings),
        )

    def security_events(self) -> List[SecurityEvent]:
        """Get a copy of the audit log."""
        return self._path_validator.get_security_events()

    def clear_security_events(self) -> None:
        self._path_validator.clear_security_events()
