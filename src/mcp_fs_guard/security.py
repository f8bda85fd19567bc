"""Security management for filesystem access.

This module provides admission control for caller-supplied paths, including:
- Input sanity checks
- Literal and percent-encoded traversal detection
- Canonicalization relative to the home directory
- Allowed directory containment
- Symlink escape detection

The pattern scans are heuristics layered in front of the containment check,
which is the authoritative decision. All checks for one call run against a
single policy snapshot.
"""

import os
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Pattern, Tuple, Union
from urllib.parse import unquote

from .config import PolicyHolder, SecurityLevel, SecurityPolicy
from .errors import PathSecurityError, PathValidationError
from .logging import LogCallback, LogEvent, LogLevel, _default_log_callback, _log
from .paths import canonicalize, is_within
from .security_types import PolicySource

__all__ = [
    "PathSecurityValidator",
    "PathValidationResult",
    "SecurityAuditLog",
    "SecurityEvent",
    "SecurityEventKind",
]

# Literal traversal markers, checked at every level
_BASE_TRAVERSAL_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\.\./"),
    re.compile(r"\.\.\\"),
    re.compile(r"/\.\."),
    re.compile(r"\\\.\."),
    re.compile(r"\.\.$"),
)

# Wider net for strict level
_STRICT_TRAVERSAL_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\.\.\."),
    re.compile(r"/\.\.$"),
    re.compile(r"\\\.\.$"),
)

_BASE_ENCODED_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"%2e%2e%2f", re.IGNORECASE),
    re.compile(r"%2e%2e", re.IGNORECASE),
)

# Encoded slash, backslash, null and space; not checked at permissive level
_STRICT_ENCODED_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"%2f", re.IGNORECASE),
    re.compile(r"%5c", re.IGNORECASE),
    re.compile(r"%00", re.IGNORECASE),
    re.compile(r"%20", re.IGNORECASE),
)

# A "%" that does not start a two-digit hex escape
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9a-fA-F]{2})")

_CLIENT_INFO = "PathSecurityValidator"


class SecurityEventKind(str, Enum):
    """Kinds of recorded security events."""

    PATH_TRAVERSAL = "path_traversal"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class SecurityEvent:
    """A single audit record.

    Note: This class is immutable (frozen); events are never changed after
    they are appended to the audit log.
    """

    kind: SecurityEventKind
    attempted_path: str
    resolved_path: Optional[str] = None
    client_info: Optional[str] = _CLIENT_INFO
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


@dataclass(frozen=True)
class PathValidationResult:
    """Outcome of :meth:`PathSecurityValidator.validate_path`."""

    is_valid: bool
    resolved_path: Optional[str] = None
    error: Optional[str] = None
    security_violation: bool = False

    def __bool__(self) -> bool:
        return self.is_valid


class SecurityAuditLog:
    """Thread-safe, append-only store of security events."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[SecurityEvent] = []

    def append(self, event: SecurityEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events(self) -> List[SecurityEvent]:
        """Get a copy of the recorded events in append order."""
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def has_traversal(path: str, level: SecurityLevel) -> bool:
    """Scan a literal path string for traversal markers.

    Args:
        path: Raw, unresolved input
        level: Security level selecting the pattern set

    Returns:
        True if any traversal pattern matches
    """
    if any(p.search(path) for p in _BASE_TRAVERSAL_PATTERNS):
        return True
    if level is SecurityLevel.STRICT:
        return any(p.search(path) for p in _STRICT_TRAVERSAL_PATTERNS)
    return False


def has_encoded_attack(path: str, level: SecurityLevel) -> bool:
    """Scan a raw path for percent-encoded traversal tricks.

    The decoded form is re-scanned for literal traversal at every level.
    Under strict level a malformed escape or an undecodable byte sequence
    counts as an attack.
    """
    if any(p.search(path) for p in _BASE_ENCODED_PATTERNS):
        return True
    if level is not SecurityLevel.PERMISSIVE and any(
        p.search(path) for p in _STRICT_ENCODED_PATTERNS
    ):
        return True

    if "%" not in path:
        return False
    if level is SecurityLevel.STRICT and _MALFORMED_ESCAPE.search(path):
        return True
    try:
        decoded = unquote(path, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return level is SecurityLevel.STRICT
    return decoded != path and has_traversal(decoded, level)


class PathSecurityValidator:
    """Admission control for caller-supplied paths.

    Validates every path against the active policy's allowed directories.
    Prevents directory traversal, encoding tricks and symlink redirection
    before any filesystem operation runs.

    The validation pipeline is:
    1. Input sanity (validation error, no audit event)
    2. Literal traversal scan on the raw string
    3. Canonicalization (``~`` and relative paths against the home directory)
    4. Percent-encoded attack scan
    5. Allowed directory containment
    6. Symlink escape (strict level, existing paths only)

    Steps 2, 4, 5 and 6 are security violations. Each one is appended to the
    audit log; the policy's audit logging flag decides whether it is also
    logged at WARNING (otherwise DEBUG).
    """

    def __init__(
        self,
        policy: Union[SecurityPolicy, PolicySource],
        audit_log: Optional[SecurityAuditLog] = None,
        on_log: Optional[LogCallback] = _default_log_callback,
    ) -> None:
        """Initialize the validator.

        Args:
            policy: A fixed policy, or a source (e.g. PolicyHolder) whose
                policy may be swapped
            audit_log: Shared audit log; a private one is created if omitted
            on_log: Structured log callback
        """
        self._holder: PolicySource = (
            PolicyHolder(policy) if isinstance(policy, SecurityPolicy) else policy
        )
        self._audit_log = audit_log if audit_log is not None else SecurityAuditLog()
        self._on_log = on_log

    @property
    def policy(self) -> SecurityPolicy:
        """Get the active policy snapshot."""
        return self._holder.policy

    @property
    def allowed_directories(self) -> List[str]:
        """Get the list of allowed directories."""
        return list(self._holder.policy.allowed_directories)

    @property
    def audit_log(self) -> SecurityAuditLog:
        return self._audit_log

    def validate_path(self, path: object) -> PathValidationResult:
        """Validate a raw path.

        Args:
            path: Caller-supplied path

        Returns:
            PathValidationResult; ``resolved_path`` is canonical when valid
        """
        policy = self._holder.policy
        level = policy.security_level

        if not isinstance(path, str):
            return self._invalid("Invalid path input")
        if not path.strip():
            return self._invalid("Empty path not allowed")
        if has_traversal(path, level):
            return self._violation(
                policy,
                SecurityEventKind.PATH_TRAVERSAL,
                path,
                None,
                "Path traversal attempt detected",
            )

        if "\x00" in path:
            return self._invalid("Path contains a null byte")

        try:
            resolved = canonicalize(path)
        except (OSError, ValueError) as e:
            return self._invalid(f"Validation error: {e}")

        if has_encoded_attack(path, level):
            return self._violation(
                policy,
                SecurityEventKind.PATH_TRAVERSAL,
                path,
                resolved,
                "Encoded path traversal attempt detected",
            )

        if not is_within(resolved, policy.allowed_directories):
            return self._violation(
                policy,
                SecurityEventKind.UNAUTHORIZED_ACCESS,
                path,
                resolved,
                "Path outside allowed directories",
            )

        if level is SecurityLevel.STRICT:
            try:
                escaped, real_path = self._symlink_escapes(policy, resolved)
            except (OSError, ValueError) as e:
                return self._invalid(f"Validation error: {e}")
            if escaped:
                return self._violation(
                    policy,
                    SecurityEventKind.UNAUTHORIZED_ACCESS,
                    path,
                    real_path,
                    "Symlink points outside allowed directories",
                )

        _log(
            self._on_log,
            LogLevel.DEBUG,
            LogEvent.PATH_VALIDATION,
            {"path": path, "valid": True},
        )
        return PathValidationResult(is_valid=True, resolved_path=resolved)

    def require_path(self, path: object, purpose: str = "access") -> str:
        """Validate a raw path and return its canonical form.

        Args:
            path: Caller-supplied path
            purpose: Description of intended access (for error messages)

        Returns:
            str: Canonical path if valid

        Raises:
            PathSecurityError: If the path is a policy bypass attempt
            PathValidationError: If the path is malformed
        """
        result = self.validate_path(path)
        if result.is_valid and result.resolved_path is not None:
            return result.resolved_path

        if not result.security_violation:
            raise PathValidationError(
                f"Path {purpose} denied: {result.error}"
            )
        shown = str(path)
        if result.error == "Path outside allowed directories":
            raise PathSecurityError.outside_allowed(shown)
        if result.error == "Encoded path traversal attempt detected":
            raise PathSecurityError.encoded_attempt(shown)
        if result.error == "Symlink points outside allowed directories":
            raise PathSecurityError.symlink_escape(shown)
        raise PathSecurityError.traversal_attempt(shown)

    def is_path_allowed(self, path: object) -> bool:
        """Check if a path would be admitted.

        Args:
            path: Path to check

        Returns:
            bool: True if the path passes every gate
        """
        return self.validate_path(path).is_valid

    def record_event(
        self,
        kind: SecurityEventKind,
        attempted_path: str,
        resolved_path: Optional[str] = None,
    ) -> None:
        """Record an event raised by a collaborator (e.g. permission denied)."""
        self._record(self._holder.policy, kind, attempted_path, resolved_path)

    def get_security_events(self) -> List[SecurityEvent]:
        """Get all security events (copy)."""
        return self._audit_log.events()

    def clear_security_events(self) -> None:
        self._audit_log.clear()

    def _symlink_escapes(
        self, policy: SecurityPolicy, resolved: str
    ) -> Tuple[bool, Optional[str]]:
        if not os.path.exists(resolved):
            return False, None
        real_path = os.path.realpath(resolved)
        if real_path == resolved:
            return False, None
        if is_within(real_path, policy.allowed_directories):
            return False, real_path
        # An allowed directory may itself sit behind a symlink
        # (e.g. /var -> /private/var on macOS)
        real_allowed = [
            os.path.realpath(d) for d in policy.allowed_directories
        ]
        return not is_within(real_path, real_allowed), real_path

    def _invalid(self, message: str) -> PathValidationResult:
        return PathValidationResult(is_valid=False, error=message)

    def _violation(
        self,
        policy: SecurityPolicy,
        kind: SecurityEventKind,
        attempted_path: str,
        resolved_path: Optional[str],
        message: str,
    ) -> PathValidationResult:
        self._record(policy, kind, attempted_path, resolved_path)
        return PathValidationResult(
            is_valid=False,
            error=message,
            security_violation=True,
        )

    def _record(
        self,
        policy: SecurityPolicy,
        kind: SecurityEventKind,
        attempted_path: str,
        resolved_path: Optional[str],
    ) -> None:
        self._audit_log.append(
            SecurityEvent(
                kind=kind,
                attempted_path=attempted_path,
                resolved_path=resolved_path,
            )
        )
        _log(
            self._on_log,
            LogLevel.WARNING if policy.audit_logging else LogLevel.DEBUG,
            LogEvent.SECURITY_VIOLATION,
            {
                "type": kind.value,
                "attempted_path": attempted_path,
                "resolved_path": resolved_path,
            },
        )
