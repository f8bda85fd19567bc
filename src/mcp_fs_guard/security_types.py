"""Security type definitions and protocols."""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .config import SecurityPolicy
    from .file_validation import FileValidationOptions, FileValidationResult
    from .security import PathValidationResult, SecurityEvent


class FileCategory(str, Enum):
    """Coarse file categories used by the file-type policy."""

    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    DOCUMENT = "document"
    ARCHIVE = "archive"
    EXECUTABLE = "executable"
    MEDIA = "media"
    UNKNOWN = "unknown"


class PolicySource(Protocol):
    """Anything that hands out the currently active policy snapshot."""

    @property
    def policy(self) -> "SecurityPolicy":
        """Get the active policy."""
        ...


@runtime_checkable
class PathValidatorProtocol(Protocol):
    """Protocol defining the interface for path admission control."""

    @property
    def allowed_directories(self) -> List[str]:
        """Get the list of allowed directories."""
        ...

    def validate_path(self, path: object) -> "PathValidationResult":
        """Validate a raw path and return a structured result."""
        ...

    def require_path(self, path: object, purpose: str = "access") -> str:
        """Validate a raw path and return its canonical form or raise."""
        ...

    def is_path_allowed(self, path: object) -> bool:
        """Check if a path would be admitted."""
        ...

    def get_security_events(self) -> List["SecurityEvent"]:
        """Get a copy of the recorded security events."""
        ...

    def clear_security_events(self) -> None:
        """Drop all recorded security events."""
        ...


@runtime_checkable
class FileValidatorProtocol(Protocol):
    """Protocol defining the interface for file-type policy checks."""

    def validate_file(
        self,
        file_path: str,
        options: Optional["FileValidationOptions"] = None,
    ) -> "FileValidationResult":
        """Validate an admitted path against the file-type policy."""
        ...
