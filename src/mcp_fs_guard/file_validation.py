"""File-type policy checks.

Runs after :class:`~mcp_fs_guard.security.PathSecurityValidator` has admitted
a path. Derives extension, MIME type and category for the path and checks
them, together with the file size, against the active policy:

1. Size (only when the file exists)
2. Extension: blocked list, allowed list, dangerous set under strict level
3. MIME type: blocked list, then allowed list (empty means unrestricted)
4. Category: blocked list, then allowed list; strict level adds warnings
   for executables and archives

Each gate can be skipped through :class:`FileValidationOptions`; the first
failing gate decides the result. The MIME table, the dangerous extension set
and the category rules are plain data so they can be audited and extended.
"""

import errno
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from .config import (
    PolicyHolder,
    SecurityLevel,
    SecurityPolicy,
    format_file_size,
    normalize_extension,
)
from .logging import LogCallback, LogEvent, LogLevel, _default_log_callback, _log
from .security_types import FileCategory, PolicySource

__all__ = [
    "DANGEROUS_EXTENSIONS",
    "DEFAULT_MIME_TYPE",
    "FileCategory",
    "FileInfo",
    "FileRejection",
    "FileTypeValidator",
    "FileValidationOptions",
    "FileValidationResult",
    "MIME_TYPE_MAP",
    "get_file_category",
    "get_mime_type",
    "is_dangerous_extension",
]

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPE_MAP: Dict[str, str] = {
    # Text and code
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".json": "application/json",
    ".xml": "application/xml",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".ts": "application/typescript",
    ".py": "text/x-python",
    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    # Documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Archives
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",
    ".rar": "application/vnd.rar",
    # Executables and scripts
    ".exe": "application/x-msdownload",
    ".bat": "application/x-bat",
    ".sh": "application/x-sh",
    # Media
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
}

# Rejected under strict level even when the allow list says "*"
DANGEROUS_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".exe", ".bat", ".cmd", ".com", ".pif", ".scr", ".vbs", ".vbe",
        ".js", ".jse", ".ws", ".wsf", ".wsc", ".wsh", ".ps1", ".ps1xml",
        ".ps2", ".ps2xml", ".psc1", ".psc2", ".msh", ".msh1", ".msh2",
        ".mshxml", ".msh1xml", ".msh2xml", ".scf", ".lnk", ".inf",
        ".reg", ".dll", ".cpl", ".jar", ".app", ".deb", ".rpm", ".dmg",
    }
)


@dataclass(frozen=True)
class _CategoryRule:
    """Maps MIME prefixes, MIME substrings or extensions to a category."""

    category: FileCategory
    mime_prefixes: Tuple[str, ...] = ()
    mime_substrings: Tuple[str, ...] = ()
    extensions: FrozenSet[str] = frozenset()

    def matches(self, extension: str, mime_type: str) -> bool:
        return (
            extension in self.extensions
            or mime_type.startswith(self.mime_prefixes)
            or any(s in mime_type for s in self.mime_substrings)
        )


# First matching rule wins
_CATEGORY_RULES: Tuple[_CategoryRule, ...] = (
    _CategoryRule(
        FileCategory.TEXT,
        mime_prefixes=("text/",),
        extensions=frozenset({".txt", ".md", ".csv"}),
    ),
    _CategoryRule(
        FileCategory.CODE,
        mime_substrings=("javascript", "typescript", "x-python"),
        extensions=frozenset({".js", ".ts", ".py", ".html", ".css"}),
    ),
    _CategoryRule(FileCategory.IMAGE, mime_prefixes=("image/",)),
    _CategoryRule(
        FileCategory.DOCUMENT,
        mime_substrings=("pdf", "msword", "excel", "powerpoint", "officedocument"),
    ),
    _CategoryRule(
        FileCategory.ARCHIVE,
        mime_substrings=("zip", "tar", "gzip", "rar", "7z"),
        extensions=frozenset({".zip", ".tar", ".gz", ".rar", ".7z"}),
    ),
    _CategoryRule(
        FileCategory.EXECUTABLE,
        mime_substrings=("executable", "msdownload", "x-sh", "x-bat"),
        extensions=DANGEROUS_EXTENSIONS,
    ),
    _CategoryRule(FileCategory.MEDIA, mime_prefixes=("audio/", "video/")),
)

# Non-fatal strict-level warnings per category
_STRICT_CATEGORY_WARNINGS: Dict[FileCategory, str] = {
    FileCategory.EXECUTABLE: "Executable files may pose security risks",
    FileCategory.ARCHIVE: "Archive files may contain executable content",
}

# stat() errors that simply mean "nothing there yet"
_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR})


class FileRejection(str, Enum):
    """Machine-readable reason for a failed file validation."""

    FILE_ACCESS_ERROR = "FILE_ACCESS_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    EXTENSION_BLOCKED = "EXTENSION_BLOCKED"
    EXTENSION_NOT_ALLOWED = "EXTENSION_NOT_ALLOWED"
    DANGEROUS_EXTENSION = "DANGEROUS_EXTENSION"
    MIME_TYPE_BLOCKED = "MIME_TYPE_BLOCKED"
    MIME_TYPE_NOT_ALLOWED = "MIME_TYPE_NOT_ALLOWED"
    CATEGORY_BLOCKED = "CATEGORY_BLOCKED"
    CATEGORY_NOT_ALLOWED = "CATEGORY_NOT_ALLOWED"


@dataclass(frozen=True)
class FileInfo:
    """Derived file facts, always populated for diagnostics."""

    extension: str
    mime_type: str
    category: FileCategory
    size: Optional[int] = None


@dataclass
class FileValidationOptions:
    """Per-call overrides; ``None`` means "use the policy value"."""

    check_size: bool = True
    check_extension: bool = True
    check_mime_type: bool = True
    check_category: bool = True
    max_size: Optional[int] = None
    allowed_extensions: Optional[Iterable[str]] = None
    blocked_extensions: Optional[Iterable[str]] = None
    allowed_mime_types: Optional[Iterable[str]] = None
    blocked_mime_types: Optional[Iterable[str]] = None
    allowed_categories: Optional[Iterable[Union[FileCategory, str]]] = None
    blocked_categories: Optional[Iterable[Union[FileCategory, str]]] = None


@dataclass
class FileValidationResult:
    """Outcome of :meth:`FileTypeValidator.validate_file`."""

    is_valid: bool
    file_info: FileInfo
    error: Optional[str] = None
    reason: Optional[FileRejection] = None
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


def get_mime_type(extension: str) -> str:
    """Get the MIME type for an extension (with or without leading dot)."""
    return MIME_TYPE_MAP.get(
        normalize_extension(extension), DEFAULT_MIME_TYPE
    )


def get_file_category(
    extension: str, mime_type: Optional[str] = None
) -> FileCategory:
    """Get the coarse category for an extension and MIME type."""
    ext = normalize_extension(extension)
    mime = (mime_type or get_mime_type(ext)).lower()
    for rule in _CATEGORY_RULES:
        if rule.matches(ext, mime):
            return rule.category
    return FileCategory.UNKNOWN


def is_dangerous_extension(extension: str) -> bool:
    """Check if a file extension is considered dangerous."""
    return normalize_extension(extension) in DANGEROUS_EXTENSIONS


def _extensions(values: Iterable[str]) -> FrozenSet[str]:
    return frozenset(normalize_extension(v) for v in values)


def _mime_types(values: Iterable[str]) -> FrozenSet[str]:
    return frozenset(v.strip().lower() for v in values)


def _categories(
    values: Iterable[Union[FileCategory, str]]
) -> FrozenSet[FileCategory]:
    return frozenset(FileCategory(v) for v in values)


class FileTypeValidator:
    """Secondary policy engine for admitted paths.

    The only filesystem access is one ``stat`` call for the size gate;
    errors from it are reported in the result instead of raised.
    """

    def __init__(
        self,
        policy: Union[SecurityPolicy, PolicySource],
        on_log: Optional[LogCallback] = _default_log_callback,
    ) -> None:
        self._holder: PolicySource = (
            PolicyHolder(policy) if isinstance(policy, SecurityPolicy) else policy
        )
        self._on_log = on_log

    @property
    def policy(self) -> SecurityPolicy:
        return self._holder.policy

    def get_mime_type(self, extension: str) -> str:
        return get_mime_type(extension)

    def get_file_category(
        self, extension: str, mime_type: Optional[str] = None
    ) -> FileCategory:
        return get_file_category(extension, mime_type)

    def is_dangerous_extension(self, extension: str) -> bool:
        return is_dangerous_extension(extension)

    def validate_file(
        self,
        file_path: str,
        options: Optional[FileValidationOptions] = None,
    ) -> FileValidationResult:
        """Validate an admitted path against the file-type policy.

        Args:
            file_path: Canonical path already admitted by the path validator
            options: Optional per-call overrides and gate switches

        Returns:
            FileValidationResult with FileInfo populated in every case
        """
        policy = self._holder.policy
        opts = options or FileValidationOptions()
        strict = policy.security_level is SecurityLevel.STRICT

        extension = os.path.splitext(file_path)[1].lower()
        mime_type = get_mime_type(extension)
        category = get_file_category(extension, mime_type)
        warnings: List[str] = []

        size: Optional[int] = None
        access_error: Optional[str] = None
        try:
            size = os.stat(file_path).st_size
        except OSError as e:
            if e.errno not in _MISSING_ERRNOS:
                access_error = e.strerror or type(e).__name__
        except ValueError as e:
            access_error = str(e)

        info = FileInfo(
            extension=extension,
            mime_type=mime_type,
            category=category,
            size=size,
        )

        def reject(reason: FileRejection, message: str) -> FileValidationResult:
            _log(
                self._on_log,
                LogLevel.INFO,
                LogEvent.FILE_VALIDATION,
                {
                    "path": file_path,
                    "valid": False,
                    "reason": reason.value,
                    "error": message,
                },
            )
            return FileValidationResult(
                is_valid=False,
                file_info=info,
                error=message,
                reason=reason,
                warnings=warnings,
            )

        if access_error is not None:
            if opts.check_size:
                return reject(
                    FileRejection.FILE_ACCESS_ERROR,
                    f"Cannot access file: {access_error}",
                )
            warnings.append(f"File size unavailable: {access_error}")

        # Size
        if opts.check_size and size is not None:
            limit = (
                opts.max_size if opts.max_size is not None else policy.max_file_size
            )
            if size > limit:
                return reject(
                    FileRejection.FILE_TOO_LARGE,
                    f"File too large: {format_file_size(size)} ({size} bytes), "
                    f"max {format_file_size(limit)} ({limit} bytes)",
                )

        # Extension
        if opts.check_extension and extension:
            blocked = (
                _extensions(opts.blocked_extensions)
                if opts.blocked_extensions is not None
                else policy.blocked_extensions
            )
            if extension in blocked:
                return reject(
                    FileRejection.EXTENSION_BLOCKED,
                    f"File extension blocked: {extension}",
                )
            allowed = (
                _extensions(opts.allowed_extensions)
                if opts.allowed_extensions is not None
                else policy.allowed_extensions
            )
            if "*" not in allowed and extension not in allowed:
                return reject(
                    FileRejection.EXTENSION_NOT_ALLOWED,
                    f"File extension not allowed: {extension}",
                )
            if (
                strict
                and policy.block_dangerous_files
                and extension in DANGEROUS_EXTENSIONS
            ):
                return reject(
                    FileRejection.DANGEROUS_EXTENSION,
                    f"Dangerous file extension blocked in strict mode: {extension}",
                )

        # MIME type
        if opts.check_mime_type:
            blocked_mime = (
                _mime_types(opts.blocked_mime_types)
                if opts.blocked_mime_types is not None
                else policy.blocked_mime_types
            )
            if mime_type in blocked_mime:
                return reject(
                    FileRejection.MIME_TYPE_BLOCKED,
                    f"MIME type blocked: {mime_type}",
                )
            allowed_mime = (
                _mime_types(opts.allowed_mime_types)
                if opts.allowed_mime_types is not None
                else policy.allowed_mime_types
            )
            if allowed_mime and mime_type not in allowed_mime:
                return reject(
                    FileRejection.MIME_TYPE_NOT_ALLOWED,
                    f"MIME type not allowed: {mime_type}",
                )

        # Category
        if opts.check_category and category is not FileCategory.UNKNOWN:
            blocked_categories = (
                _categories(opts.blocked_categories)
                if opts.blocked_categories is not None
                else policy.blocked_categories
            )
            if category in blocked_categories:
                return reject(
                    FileRejection.CATEGORY_BLOCKED,
                    f"File category blocked: {category.value}",
                )
            allowed_categories = (
                _categories(opts.allowed_categories)
                if opts.allowed_categories is not None
                else policy.allowed_categories
            )
            if allowed_categories and category not in allowed_categories:
                return reject(
                    FileRejection.CATEGORY_NOT_ALLOWED,
                    f"File category not allowed: {category.value}",
                )
            if strict and category in _STRICT_CATEGORY_WARNINGS:
                warnings.append(_STRICT_CATEGORY_WARNINGS[category])

        _log(
            self._on_log,
            LogLevel.DEBUG,
            LogEvent.FILE_VALIDATION,
            {"path": file_path, "valid": True, "warnings": list(warnings)},
        )
        return FileValidationResult(
            is_valid=True, file_info=info, warnings=warnings
        )
