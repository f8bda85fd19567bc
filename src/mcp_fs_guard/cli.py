"""Command-line diagnostics for the filesystem guard.

Resolve the active configuration and show where every value came from:

    mcp-fs-guard config
    mcp-fs-guard --security-level moderate --allowed-dir ~/Projects config

Check whether a path (and optionally the file behind it) would be admitted:

    mcp-fs-guard check ~/Documents/report.pdf --file
"""

import argparse
import json
import logging
import sys
from enum import IntEnum
from importlib.metadata import version
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .config import (
    ConfigurationResolver,
    LogDestination,
    LogLevelName,
    ResolvedConfiguration,
    SecurityLevel,
)
from .errors import (
    FileNotFoundError,
    FileValidationError,
    NotAFileError,
    PathSecurityError,
    PathValidationError,
)
from .guard import FilesystemGuard

# Set up logging
logger = logging.getLogger("mcp_fs_guard")

# Get package version
try:
    __version__ = version("mcp-fs-guard")
except Exception:
    __version__ = "unknown"


class ExitCode(IntEnum):
    """Exit codes for the CLI following standard Unix conventions.

    Categories:
    - Success (0-1)
    - User Interruption (2-3)
    - Input/Validation (64-69)
    - I/O and File Access (70-79)
    - Internal Errors (90-99)
    """

    # Success codes
    SUCCESS = 0

    # User interruption
    INTERRUPTED = 2

    # Input/Validation errors (64-69)
    USAGE_ERROR = 64
    DATA_ERROR = 65
    VALIDATION_ERROR = 67

    # I/O and File Access errors (70-79)
    IO_ERROR = 70
    FILE_NOT_FOUND = 71
    PERMISSION_ERROR = 72
    SECURITY_ERROR = 73

    # Internal errors (90-99)
    INTERNAL_ERROR = 90


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def collect_cli_settings(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed arguments onto settings fields.

    Options the user did not pass map to ``None`` so lower layers win.
    """
    return {
        "allowed_directories": args.allowed_dir or None,
        "security_level": args.security_level,
        "max_file_size": args.max_file_size,
        "allowed_extensions": _split(args.allowed_ext),
        "blocked_extensions": _split(args.blocked_ext),
        "allowed_mime_types": _split(args.allowed_mime),
        "blocked_mime_types": _split(args.blocked_mime),
        "enable_symlink_following": args.follow_symlinks,
        "enable_audit_logging": args.audit_logging,
        "log_level": args.log_level,
        "log_destination": args.log_destination,
        "log_file": args.log_file,
    }


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="mcp-fs-guard",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    # Configuration sources
    source_group = parser.add_argument_group("Configuration Sources")
    source_group.add_argument(
        "--config",
        dest="config_file",
        help="Configuration file (JSON or YAML); disables the file search",
        metavar="PATH",
    )
    source_group.add_argument(
        "--env-file",
        help="Load MCP_FS_* variables from a dotenv file first",
        metavar="PATH",
    )

    # Policy overrides
    policy_group = parser.add_argument_group("Policy Overrides")
    policy_group.add_argument(
        "--allowed-dir",
        action="append",
        default=[],
        help="Allowed directory (repeatable)",
        metavar="PATH",
    )
    policy_group.add_argument(
        "--security-level",
        choices=[level.value for level in SecurityLevel],
        help="Security level",
    )
    policy_group.add_argument(
        "--max-file-size",
        help='Maximum file size, e.g. "10MB"',
        metavar="SIZE",
    )
    policy_group.add_argument(
        "--allowed-ext",
        help="Comma-separated allowed extensions ('*' for all)",
    )
    policy_group.add_argument(
        "--blocked-ext",
        help="Comma-separated blocked extensions",
    )
    policy_group.add_argument(
        "--allowed-mime",
        help="Comma-separated allowed MIME types",
    )
    policy_group.add_argument(
        "--blocked-mime",
        help="Comma-separated blocked MIME types",
    )
    policy_group.add_argument(
        "--follow-symlinks",
        action="store_const",
        const=True,
        default=None,
        help="Allow operating on symbolic links",
    )
    policy_group.add_argument(
        "--audit-logging",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=(
            "Log security violations at WARNING "
            "(default depends on security level)"
        ),
    )

    # Logging
    log_group = parser.add_argument_group("Logging")
    log_group.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevelName],
        help="Log level",
    )
    log_group.add_argument(
        "--log-destination",
        choices=[dest.value for dest in LogDestination],
        help="Log destination",
    )
    log_group.add_argument("--log-file", help="Log file path", metavar="PATH")
    parser.add_argument(
        "--strict-config",
        action="store_true",
        help="Make check fail when the configuration has errors",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser(
        "config",
        help=(
            "Show the resolved configuration; exits with DATA_ERROR (65) "
            "when it has errors"
        ),
    )
    config_parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        default="json",
        help="Output format (default: json)",
    )

    check_parser = subparsers.add_parser(
        "check", help="Check whether a path would be admitted"
    )
    check_parser.add_argument("path", help="Path to check")
    check_parser.add_argument(
        "--file",
        action="store_true",
        help="Also run the file-type policy",
    )
    check_parser.add_argument(
        "--must-exist",
        action="store_true",
        help="Require an existing regular file",
    )
    return parser


def describe_configuration(resolved: ResolvedConfiguration) -> Dict[str, Any]:
    """Build a serializable view of a resolved configuration."""
    return {
        "config_file": resolved.config_file,
        "settings": resolved.settings.model_dump(mode="json"),
        "policy": {
            "security_level": resolved.policy.security_level.value,
            "allowed_directories": list(resolved.policy.allowed_directories),
            "max_file_size": resolved.policy.max_file_size,
            "audit_logging": resolved.policy.audit_logging,
            "follow_symlinks": resolved.policy.follow_symlinks,
        },
        "sources": {
            name: source.value for name, source in resolved.sources.items()
        },
        "errors": list(resolved.errors),
        "warnings": list(resolved.warnings),
    }


def _print(data: Dict[str, Any], output_format: str = "json") -> None:
    if output_format == "yaml":
        print(yaml.safe_dump(data, sort_keys=False), end="", flush=True)
    else:
        print(json.dumps(data, indent=2), flush=True)


def _run_check(guard: FilesystemGuard, args: argparse.Namespace) -> ExitCode:
    report: Dict[str, Any] = {"path": args.path}
    result = guard.validate_path(args.path)
    report.update(
        {
            "valid": result.is_valid,
            "resolved_path": result.resolved_path,
            "error": result.error,
            "security_violation": result.security_violation,
        }
    )
    if not result.is_valid:
        _print(report)
        if result.security_violation:
            return ExitCode.SECURITY_ERROR
        return ExitCode.VALIDATION_ERROR

    if not (args.file or args.must_exist):
        _print(report)
        return ExitCode.SUCCESS

    try:
        check = guard.check_file(args.path, must_exist=args.must_exist)
    except PathSecurityError as e:
        report.update({"valid": False, "error": str(e)})
        _print(report)
        return ExitCode.SECURITY_ERROR
    except (FileNotFoundError, NotAFileError) as e:
        report.update({"valid": False, "error": str(e)})
        _print(report)
        return ExitCode.FILE_NOT_FOUND
    except FileValidationError as e:
        report.update(
            {
                "valid": False,
                "error": e.message,
                "reason": e.reason,
                "file": _file_info(e.file_info),
            }
        )
        _print(report)
        return ExitCode.VALIDATION_ERROR

    report["file"] = _file_info(check.info)
    report["warnings"] = list(check.warnings)
    _print(report)
    return ExitCode.SUCCESS


def _file_info(info: Any) -> Optional[Dict[str, Any]]:
    if info is None:
        return None
    return {
        "extension": info.extension,
        "mime_type": info.mime_type,
        "category": info.category.value,
        "size": info.size,
    }


def _main(argv: Optional[List[str]] = None) -> ExitCode:
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.env_file:
        load_dotenv(args.env_file, override=False)

    resolver = ConfigurationResolver(
        cli_args=collect_cli_settings(args),
        config_file=args.config_file,
    )
    resolved = resolver.resolve()
    guard = FilesystemGuard(
        resolved.policy,
        resolver=resolver,
        configuration=resolved,
        manage_logging=True,
    )

    if args.command == "config":
        _print(describe_configuration(resolved), args.format)
        return ExitCode.DATA_ERROR if resolved.errors else ExitCode.SUCCESS

    if args.strict_config and resolved.errors:
        for error in resolved.errors:
            logger.error("Configuration error: %s", error)
        return ExitCode.DATA_ERROR

    return _run_check(guard, args)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point that handles all errors."""
    try:
        exit_code = _main(argv)
        sys.exit(exit_code.value)
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        sys.exit(ExitCode.INTERRUPTED.value)
    except PathValidationError as e:
        logger.error(str(e))
        sys.exit(ExitCode.VALIDATION_ERROR.value)
    except OSError as e:
        logger.error("I/O error: %s", e)
        sys.exit(ExitCode.IO_ERROR.value)


if __name__ == "__main__":
    main()
