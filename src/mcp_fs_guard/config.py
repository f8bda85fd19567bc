"""Layered configuration for the filesystem guard.

Settings come from four layers, highest precedence first:

1. Command-line arguments
2. ``MCP_FS_*`` environment variables
3. A JSON or YAML configuration file
4. Compiled defaults

:class:`ConfigurationResolver` merges the layers into an immutable
:class:`ServerSettings`, derives the :class:`SecurityPolicy` the validators
consume, and records which layer supplied every field. Invalid values never
raise; they are reported in ``ResolvedConfiguration.errors`` and the field
keeps the value from the next layer down.
"""

import json
import os
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .logging import LogCallback, LogEvent, LogLevel, _default_log_callback, _log
from .paths import canonicalize, home_directory
from .security_types import FileCategory

__all__ = [
    "ConfigSource",
    "ConfigurationResolver",
    "ENV_VARS",
    "LogDestination",
    "LogLevelName",
    "PolicyHolder",
    "ResolvedConfiguration",
    "SecurityLevel",
    "SecurityPolicy",
    "ServerSettings",
    "format_file_size",
    "normalize_extension",
    "parse_boolean",
    "parse_file_size",
]

DEFAULT_MAX_FILE_SIZE = "10MB"

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(B|KB|MB|GB|TB)$", re.IGNORECASE)

_SIZE_MULTIPLIERS: Dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class SecurityLevel(str, Enum):
    """Named bundles of traversal, encoding and symlink checks."""

    STRICT = "strict"
    MODERATE = "moderate"
    PERMISSIVE = "permissive"


class LogLevelName(str, Enum):
    """Log levels accepted in configuration."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class LogDestination(str, Enum):
    """Where log records are written."""

    CONSOLE = "console"
    FILE = "file"
    SYSLOG = "syslog"


class ConfigSource(str, Enum):
    """Configuration layer that supplied a value."""

    DEFAULT = "default"
    CONFIG_FILE = "config_file"
    ENVIRONMENT = "environment"
    CLI_ARGS = "cli_args"


def parse_boolean(value: str) -> bool:
    """Parse a boolean flag the way environment variables spell them."""
    return value.strip().lower() in _TRUE_VALUES


def is_valid_file_size(size: str) -> bool:
    """Check a size string against the ``<number><unit>`` grammar."""
    return bool(_SIZE_PATTERN.match(size))


def parse_file_size(size: str) -> int:
    """Convert a size string such as ``"10MB"`` to bytes.

    Args:
        size: Number followed by one of B, KB, MB, GB, TB (1024 based)

    Returns:
        Size in bytes, rounded down

    Raises:
        ValueError: If the string does not match the grammar
    """
    match = _SIZE_PATTERN.match(size)
    if not match:
        raise ValueError(f"Invalid file size format: {size}")
    value = float(match.group(1))
    unit = match.group(2).upper()
    return int(value * _SIZE_MULTIPLIERS[unit])


def format_file_size(num_bytes: int) -> str:
    """Format a byte count for humans, e.g. ``10.0MB``."""
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    if unit_index == 0:
        return f"{int(size)}{_SIZE_UNITS[0]}"
    return f"{size:.1f}{_SIZE_UNITS[unit_index]}"


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and give it a leading dot (``*`` is kept)."""
    ext = extension.strip().lower()
    if not ext or ext == "*" or ext.startswith("."):
        return ext
    return "." + ext


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class SecurityPolicy(BaseModel):
    """Immutable snapshot of everything the validators enforce.

    Allowed directories are canonicalized when the policy is built, so
    downstream containment checks are plain string comparisons. A policy is
    never modified; a reload builds a new one and swaps it in through a
    :class:`PolicyHolder`.
    """

    model_config = ConfigDict(frozen=True)

    security_level: SecurityLevel = SecurityLevel.STRICT
    allowed_directories: Tuple[str, ...] = ()
    max_file_size: int = Field(default=10 * 1024 * 1024, ge=0)
    allowed_extensions: FrozenSet[str] = frozenset({"*"})
    blocked_extensions: FrozenSet[str] = frozenset()
    allowed_mime_types: FrozenSet[str] = frozenset()
    blocked_mime_types: FrozenSet[str] = frozenset()
    allowed_categories: FrozenSet[FileCategory] = frozenset()
    blocked_categories: FrozenSet[FileCategory] = frozenset()
    follow_symlinks: bool = False
    audit_logging: bool = True
    block_dangerous_files: bool = True

    @field_validator("allowed_directories", mode="after")
    @classmethod
    def _canonical_directories(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not d.strip() for d in value):
            raise ValueError(
                "Allowed directories must not contain blank entries"
            )
        home = home_directory()
        return tuple(_dedupe(canonicalize(d, home) for d in value))

    @field_validator("allowed_extensions", "blocked_extensions", mode="after")
    @classmethod
    def _normalized_extensions(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(
            ext for ext in (normalize_extension(e) for e in value) if ext
        )

    @field_validator("allowed_mime_types", "blocked_mime_types", mode="after")
    @classmethod
    def _normalized_mime_types(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(m.strip().lower() for m in value if m.strip())

    @classmethod
    def for_directories(
        cls,
        allowed_directories: Sequence[str],
        security_level: Union[SecurityLevel, str] = SecurityLevel.STRICT,
        **overrides: Any,
    ) -> "SecurityPolicy":
        """Build a policy for a set of directories with level defaults.

        Audit logging is on for strict and moderate levels and off for
        permissive unless ``audit_logging`` is passed explicitly.
        """
        level = SecurityLevel(security_level)
        overrides.setdefault(
            "audit_logging", level is not SecurityLevel.PERMISSIVE
        )
        return cls(
            security_level=level,
            allowed_directories=tuple(allowed_directories),
            **overrides,
        )


class ServerSettings(BaseModel):
    """All configurable settings of the filesystem server.

    Field names are snake_case; configuration files may use the camelCase
    aliases (``allowedDirectories``, ``maxFileSize``, ...).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Directory access
    allowed_directories: List[str] = Field(
        default_factory=lambda: ["~/Documents", "~/Desktop"]
    )
    security_level: SecurityLevel = SecurityLevel.STRICT

    # File restrictions
    max_file_size: str = DEFAULT_MAX_FILE_SIZE
    allowed_extensions: List[str] = Field(default_factory=lambda: ["*"])
    blocked_extensions: List[str] = Field(default_factory=list)
    allowed_mime_types: List[str] = Field(default_factory=list)
    blocked_mime_types: List[str] = Field(default_factory=list)
    allowed_file_categories: List[FileCategory] = Field(default_factory=list)
    blocked_file_categories: List[FileCategory] = Field(default_factory=list)
    enable_content_validation: bool = False
    block_dangerous_files: bool = True
    enable_audit_logging: Optional[bool] = None

    # Logging
    log_level: LogLevelName = LogLevelName.INFO
    log_destination: LogDestination = LogDestination.CONSOLE
    log_file: Optional[str] = None

    # Server options
    enable_enhanced_tools: bool = False
    enable_batch_operations: bool = False
    enable_symlink_following: bool = False

    # Performance and cache
    max_concurrent_operations: int = 5
    operation_timeout: int = 30000
    enable_caching: bool = True
    cache_timeout: int = 60000

    @field_validator("max_file_size")
    @classmethod
    def _check_size(cls, value: str) -> str:
        if not is_valid_file_size(value):
            raise ValueError(f"Invalid file size format: {value}")
        return value

    @property
    def max_file_size_bytes(self) -> int:
        """Get the maximum file size in bytes."""
        return parse_file_size(self.max_file_size)

    @property
    def audit_logging(self) -> bool:
        """Audit logging flag, derived from the level when not set."""
        if self.enable_audit_logging is not None:
            return self.enable_audit_logging
        return self.security_level is not SecurityLevel.PERMISSIVE

    def to_policy(self) -> SecurityPolicy:
        """Derive the immutable security policy from these settings."""
        return SecurityPolicy(
            security_level=self.security_level,
            allowed_directories=tuple(self.allowed_directories),
            max_file_size=self.max_file_size_bytes,
            allowed_extensions=frozenset(self.allowed_extensions),
            blocked_extensions=frozenset(self.blocked_extensions),
            allowed_mime_types=frozenset(self.allowed_mime_types),
            blocked_mime_types=frozenset(self.blocked_mime_types),
            allowed_categories=frozenset(self.allowed_file_categories),
            blocked_categories=frozenset(self.blocked_file_categories),
            follow_symlinks=self.enable_symlink_following,
            audit_logging=self.audit_logging,
            block_dangerous_files=self.block_dangerous_files,
        )


# Environment variable -> settings field
ENV_VARS: Dict[str, str] = {
    "MCP_FS_ALLOWED_DIRS": "allowed_directories",
    "MCP_FS_SECURITY_LEVEL": "security_level",
    "MCP_FS_MAX_FILE_SIZE": "max_file_size",
    "MCP_FS_ALLOWED_EXTENSIONS": "allowed_extensions",
    "MCP_FS_BLOCKED_EXTENSIONS": "blocked_extensions",
    "MCP_FS_ALLOWED_MIME_TYPES": "allowed_mime_types",
    "MCP_FS_BLOCKED_MIME_TYPES": "blocked_mime_types",
    "MCP_FS_ALLOWED_FILE_CATEGORIES": "allowed_file_categories",
    "MCP_FS_BLOCKED_FILE_CATEGORIES": "blocked_file_categories",
    "MCP_FS_ENABLE_CONTENT_VALIDATION": "enable_content_validation",
    "MCP_FS_BLOCK_DANGEROUS_FILES": "block_dangerous_files",
    "MCP_FS_ENABLE_AUDIT_LOGGING": "enable_audit_logging",
    "MCP_FS_LOG_LEVEL": "log_level",
    "MCP_FS_LOG_DESTINATION": "log_destination",
    "MCP_FS_LOG_FILE": "log_file",
    "MCP_FS_ENABLE_ENHANCED_TOOLS": "enable_enhanced_tools",
    "MCP_FS_ENABLE_BATCH_OPERATIONS": "enable_batch_operations",
    "MCP_FS_ENABLE_SYMLINK_FOLLOWING": "enable_symlink_following",
    "MCP_FS_MAX_CONCURRENT_OPERATIONS": "max_concurrent_operations",
    "MCP_FS_OPERATION_TIMEOUT": "operation_timeout",
    "MCP_FS_ENABLE_CACHING": "enable_caching",
    "MCP_FS_CACHE_TIMEOUT": "cache_timeout",
}

CONFIG_FILE_ENV_VAR = "MCP_FS_CONFIG_FILE"

CONFIG_FILE_NAMES: Tuple[str, ...] = (
    "mcp-filesystem.json",
    "mcp-filesystem.yaml",
    "mcp-filesystem.yml",
    ".mcp-filesystem.json",
    ".mcp-filesystem.yaml",
    ".mcp-filesystem.yml",
)

_FIELDS = ServerSettings.model_fields

_FIELD_ADAPTERS: Dict[str, TypeAdapter] = {
    name: TypeAdapter(info.annotation) for name, info in _FIELDS.items()
}

# Both snake_case names and camelCase aliases map to the field name
_KEY_LOOKUP: Dict[str, str] = {}
for _name in _FIELDS:
    _KEY_LOOKUP[_name] = _name
    _KEY_LOOKUP[to_camel(_name)] = _name

_LIST_FIELDS = frozenset(
    {
        "allowed_directories",
        "allowed_extensions",
        "blocked_extensions",
        "allowed_mime_types",
        "blocked_mime_types",
        "allowed_file_categories",
        "blocked_file_categories",
    }
)
_BOOL_FIELDS = frozenset(
    name
    for name, info in _FIELDS.items()
    if info.annotation in (bool, Optional[bool])
)
_POSITIVE_INT_FIELDS = frozenset(
    {"max_concurrent_operations", "operation_timeout", "cache_timeout"}
)
_ENUM_FIELDS = frozenset({"security_level", "log_level", "log_destination"})

_FIELD_LABELS: Dict[str, str] = {
    "max_file_size": "file size format",
    "allowed_file_categories": "file category",
    "blocked_file_categories": "file category",
}

_SOURCE_LABELS: Dict[ConfigSource, str] = {
    ConfigSource.DEFAULT: "defaults",
    ConfigSource.CONFIG_FILE: "config file",
    ConfigSource.ENVIRONMENT: "environment",
    ConfigSource.CLI_ARGS: "command line",
}


def _label(name: str) -> str:
    return _FIELD_LABELS.get(name, name.replace("_", " "))


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _coerce(name: str, value: Any) -> Any:
    """Validate one raw value for a settings field.

    Raises:
        ValueError: With an operator-facing message if the value is invalid
    """
    raw = value
    if name in _LIST_FIELDS and isinstance(value, str):
        value = _split_list(value)
    elif name in _ENUM_FIELDS and isinstance(value, str):
        value = value.strip().lower()
    elif name == "max_file_size" and isinstance(value, int) and not isinstance(
        value, bool
    ):
        value = f"{value}B"

    if name in ("allowed_file_categories", "blocked_file_categories"):
        for item in value if isinstance(value, list) else []:
            if str(item).strip().lower() not in {c.value for c in FileCategory}:
                raise ValueError(f"Invalid {_label(name)}: {item}")
        if isinstance(value, list):
            value = [str(item).strip().lower() for item in value]

    try:
        coerced = _FIELD_ADAPTERS[name].validate_python(value)
    except ValidationError:
        raise ValueError(f"Invalid {_label(name)}: {raw}")

    if name == "max_file_size" and not is_valid_file_size(coerced):
        raise ValueError(f"Invalid {_label(name)}: {raw}")
    if name in _POSITIVE_INT_FIELDS and coerced <= 0:
        raise ValueError(f"Invalid {_label(name)}: {raw}")
    # A blank entry would canonicalize to the home directory
    if name == "allowed_directories" and any(not d.strip() for d in coerced):
        raise ValueError(f"Blank entry in {_label(name)}: {raw!r}")
    if name in ("allowed_extensions", "blocked_extensions"):
        coerced = _dedupe(normalize_extension(ext) for ext in coerced)
    if name in ("allowed_mime_types", "blocked_mime_types"):
        coerced = _dedupe(m.strip().lower() for m in coerced)
    return coerced


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Outcome of one resolution pass.

    Note: ``errors`` and ``warnings`` are diagnostics only; ``settings`` and
    ``policy`` are always usable.
    """

    settings: ServerSettings
    policy: SecurityPolicy
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    sources: Mapping[str, ConfigSource] = field(default_factory=dict)
    config_file: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class PolicyHolder:
    """Holds the active policy and swaps it atomically on reload.

    Readers grab :attr:`policy` once per call and keep that snapshot for
    the whole validation, so they never observe a half-updated policy.
    """

    def __init__(self, policy: SecurityPolicy) -> None:
        self._lock = threading.Lock()
        self._policy = policy

    @property
    def policy(self) -> SecurityPolicy:
        """Get the active policy snapshot."""
        return self._policy

    def swap(self, policy: SecurityPolicy) -> SecurityPolicy:
        """Replace the active policy.

        Args:
            policy: New policy snapshot

        Returns:
            The policy that was active before the swap
        """
        with self._lock:
            previous = self._policy
            self._policy = policy
        return previous


class _Layering:
    """Mutable merge state for a single resolve() call."""

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {}
        self.sources: Dict[str, ConfigSource] = {
            name: ConfigSource.DEFAULT for name in _FIELDS
        }
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def apply(
        self,
        values: Mapping[str, Any],
        source: ConfigSource,
        origins: Optional[Mapping[str, str]] = None,
    ) -> None:
        for name, raw in values.items():
            origin = (origins or {}).get(name, _SOURCE_LABELS[source])
            try:
                coerced = _coerce(name, raw)
            except ValueError as e:
                self.errors.append(f"{e} ({origin})")
                continue
            self.values[name] = coerced
            self.sources[name] = source


class ConfigurationResolver:
    """Merges defaults, config file, environment and CLI arguments.

    The resolver holds no resolved state of its own. Each :meth:`resolve`
    call reads every layer afresh, which makes it safe to call again for a
    reload.
    """

    def __init__(
        self,
        cli_args: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[str] = None,
        search_paths: Optional[Sequence[str]] = None,
        on_log: Optional[LogCallback] = _default_log_callback,
    ) -> None:
        """Initialize the resolver.

        Args:
            cli_args: Settings from the command line keyed by field name;
                ``None`` values are ignored
            environ: Environment mapping (defaults to ``os.environ`` at
                resolve time)
            config_file: Explicit configuration file; disables the search
            search_paths: Candidate config files to probe instead of the
                built-in locations
            on_log: Structured log callback
        """
        self._cli_args = dict(cli_args or {})
        self._environ = environ
        self._config_file = config_file
        self._search_paths = list(search_paths) if search_paths is not None else None
        self._on_log = on_log

    def resolve(self) -> ResolvedConfiguration:
        """Resolve settings from all layers.

        Returns:
            ResolvedConfiguration with settings, policy, diagnostics and the
            winning source of every field
        """
        environ = self._environ if self._environ is not None else os.environ
        home = home_directory()
        state = _Layering()

        file_values, config_file = self._load_from_config_file(
            environ, home, state
        )
        if file_values:
            state.apply(
                file_values,
                ConfigSource.CONFIG_FILE,
                {name: f"in {config_file}" for name in file_values},
            )

        env_values, env_origins = self._load_from_environment(environ)
        state.apply(env_values, ConfigSource.ENVIRONMENT, env_origins)

        cli_values = {
            name: value
            for name, value in self._cli_args.items()
            if value is not None and name in _FIELDS
        }
        for key in self._cli_args:
            if key not in _FIELDS:
                state.warnings.append(f"Unknown command line setting: {key}")
        state.apply(cli_values, ConfigSource.CLI_ARGS)

        settings = self._post_process(state, home)
        resolved = ResolvedConfiguration(
            settings=settings,
            policy=settings.to_policy(),
            errors=tuple(state.errors),
            warnings=tuple(state.warnings),
            sources=dict(state.sources),
            config_file=config_file,
        )
        self._report(resolved)
        return resolved

    def reload(self, holder: PolicyHolder) -> ResolvedConfiguration:
        """Re-resolve and swap the new policy into ``holder``.

        Args:
            holder: Policy holder shared with the validators

        Returns:
            The freshly resolved configuration
        """
        resolved = self.resolve()
        holder.swap(resolved.policy)
        _log(
            self._on_log,
            LogLevel.INFO,
            LogEvent.CONFIG_RELOADED,
            {
                "message": "Security policy reloaded",
                "security_level": resolved.policy.security_level.value,
                "allowed_directories": list(
                    resolved.policy.allowed_directories
                ),
            },
        )
        return resolved

    def _candidate_paths(
        self, environ: Mapping[str, str], home: str
    ) -> Tuple[List[str], bool]:
        explicit = self._config_file or environ.get(CONFIG_FILE_ENV_VAR)
        if explicit:
            return [os.path.abspath(os.path.expanduser(explicit))], True
        if self._search_paths is not None:
            return list(self._search_paths), False
        cwd = os.getcwd()
        candidates = [os.path.join(cwd, name) for name in CONFIG_FILE_NAMES]
        for name in CONFIG_FILE_NAMES[3:]:
            candidates.append(os.path.join(home, name))
        for name in CONFIG_FILE_NAMES[:3]:
            candidates.append(os.path.join(home, ".config", name))
        return candidates, False

    def _load_from_config_file(
        self, environ: Mapping[str, str], home: str, state: _Layering
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        candidates, explicit = self._candidate_paths(environ, home)
        for path in candidates:
            if not os.path.isfile(path):
                if explicit:
                    state.errors.append(f"Config file not found: {path}")
                continue
            try:
                with open(path, "r", encoding="utf-8") as f:
                    content = f.read()
                if path.endswith(".json"):
                    data = json.loads(content)
                else:
                    data = yaml.safe_load(content)
            except (OSError, ValueError, yaml.YAMLError) as e:
                state.errors.append(f"Failed to load config file {path}: {e}")
                continue

            if data is None:
                data = {}
            if not isinstance(data, dict):
                state.errors.append(
                    f"Config file {path} must contain a mapping of settings"
                )
                continue

            values: Dict[str, Any] = {}
            for key, value in data.items():
                name = _KEY_LOOKUP.get(str(key))
                if name is None:
                    state.warnings.append(
                        f"Unknown configuration key '{key}' in {path}"
                    )
                    continue
                values[name] = value
            return values, path
        return {}, None

    def _load_from_environment(
        self, environ: Mapping[str, str]
    ) -> Tuple[Dict[str, Any], Dict[str, str]]:
        values: Dict[str, Any] = {}
        origins: Dict[str, str] = {}
        for var, name in ENV_VARS.items():
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            if name in _BOOL_FIELDS:
                values[name] = parse_boolean(raw)
            else:
                values[name] = raw
            origins[name] = f"from {var}"
        return values, origins

    def _post_process(self, state: _Layering, home: str) -> ServerSettings:
        values = state.values

        directories = values.get(
            "allowed_directories", _FIELDS["allowed_directories"].get_default(
                call_default_factory=True
            )
        )
        values["allowed_directories"] = _dedupe(
            canonicalize(d, home) for d in directories
        )
        for directory in values["allowed_directories"]:
            if not os.path.isdir(directory):
                state.warnings.append(
                    f"Allowed directory does not exist: {directory}"
                )

        destination = values.get("log_destination", LogDestination.CONSOLE)
        if destination is LogDestination.FILE and not (
            values.get("log_file") or ""
        ).strip():
            state.errors.append(
                'Log file path is required when log destination is "file"'
            )
            values["log_destination"] = LogDestination.CONSOLE
            state.sources["log_destination"] = ConfigSource.DEFAULT

        settings = ServerSettings(**values)

        if settings.security_level is SecurityLevel.PERMISSIVE:
            state.warnings.append(
                "Permissive security level reduces security protections"
            )
        if (
            settings.enable_enhanced_tools
            and settings.security_level is SecurityLevel.STRICT
        ):
            state.warnings.append(
                "Enhanced tools may have limited functionality in strict security mode"
            )
        return settings

    def _report(self, resolved: ResolvedConfiguration) -> None:
        for error in resolved.errors:
            _log(
                self._on_log,
                LogLevel.WARNING,
                LogEvent.CONFIG_ERROR,
                {"message": error},
            )
        for warning in resolved.warnings:
            _log(
                self._on_log,
                LogLevel.WARNING,
                LogEvent.CONFIG_WARNING,
                {"message": warning},
            )
        _log(
            self._on_log,
            LogLevel.DEBUG,
            LogEvent.CONFIG_RESOLVED,
            {
                "config_file": resolved.config_file,
                "security_level": resolved.policy.security_level.value,
                "allowed_directories": list(
                    resolved.policy.allowed_directories
                ),
                "max_file_size": resolved.policy.max_file_size,
            },
        )
