"""Tests for the file-type policy."""

import errno
import os
from typing import Any

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem

from mcp_fs_guard import file_validation
from mcp_fs_guard.config import PolicyHolder, SecurityLevel, SecurityPolicy
from mcp_fs_guard.file_validation import (
    DEFAULT_MIME_TYPE,
    FileCategory,
    FileRejection,
    FileTypeValidator,
    FileValidationOptions,
    get_file_category,
    get_mime_type,
    is_dangerous_extension,
)

DOCS = "/home/u/Documents"
LIMIT = 10 * 1024 * 1024


def make_validator(
    level: SecurityLevel = SecurityLevel.STRICT,
    on_log: Any = None,
    **overrides: Any,
) -> FileTypeValidator:
    policy = SecurityPolicy.for_directories([DOCS], level, **overrides)
    return FileTypeValidator(policy, on_log=on_log)


@pytest.mark.parametrize(
    "extension,mime_type",
    [
        (".txt", "text/plain"),
        ("PNG", "image/png"),
        (".JPEG", "image/jpeg"),
        (".pdf", "application/pdf"),
        (".zip", "application/zip"),
        (".exe", "application/x-msdownload"),
        (".unknownext", DEFAULT_MIME_TYPE),
        ("", DEFAULT_MIME_TYPE),
    ],
)
def test_get_mime_type(extension: str, mime_type: str) -> None:
    assert get_mime_type(extension) == mime_type


@pytest.mark.parametrize(
    "extension,category",
    [
        (".txt", FileCategory.TEXT),
        (".md", FileCategory.TEXT),
        (".yaml", FileCategory.TEXT),
        (".py", FileCategory.TEXT),
        (".html", FileCategory.TEXT),
        (".css", FileCategory.TEXT),
        (".js", FileCategory.CODE),
        (".ts", FileCategory.CODE),
        (".png", FileCategory.IMAGE),
        (".svg", FileCategory.IMAGE),
        (".pdf", FileCategory.DOCUMENT),
        (".docx", FileCategory.DOCUMENT),
        (".zip", FileCategory.ARCHIVE),
        (".gz", FileCategory.ARCHIVE),
        (".exe", FileCategory.EXECUTABLE),
        (".sh", FileCategory.EXECUTABLE),
        (".dll", FileCategory.EXECUTABLE),
        (".mp3", FileCategory.MEDIA),
        (".mp4", FileCategory.MEDIA),
        (".xyz", FileCategory.UNKNOWN),
    ],
)
def test_get_file_category(extension: str, category: FileCategory) -> None:
    assert get_file_category(extension) is category


def test_is_dangerous_extension() -> None:
    assert is_dangerous_extension(".exe")
    assert is_dangerous_extension("PS1")
    assert is_dangerous_extension(".dmg")
    assert not is_dangerous_extension(".txt")
    assert not is_dangerous_extension("")


def test_validator_wrappers() -> None:
    validator = make_validator()

    assert validator.get_mime_type(".css") == "text/css"
    assert validator.get_file_category(".css") is FileCategory.TEXT
    assert validator.get_file_category(".ts") is FileCategory.CODE
    assert validator.is_dangerous_extension(".bat")


def test_missing_file_is_valid_without_size(fs: FakeFilesystem) -> None:
    """A path for a file about to be written has no size to check."""
    result = make_validator().validate_file(f"{DOCS}/new.txt")

    assert result.is_valid
    assert result.file_info.size is None
    assert result.file_info.extension == ".txt"
    assert result.file_info.mime_type == "text/plain"
    assert result.file_info.category is FileCategory.TEXT


def test_size_at_limit_is_valid(fs: FakeFilesystem) -> None:
    fs.create_file(f"{DOCS}/exact.txt", st_size=LIMIT)

    result = make_validator().validate_file(f"{DOCS}/exact.txt")

    assert result.is_valid
    assert result.file_info.size == LIMIT


def test_size_one_byte_over_limit(fs: FakeFilesystem) -> None:
    fs.create_file(f"{DOCS}/big.txt", st_size=LIMIT + 1)

    result = make_validator().validate_file(f"{DOCS}/big.txt")

    assert not result.is_valid
    assert result.reason is FileRejection.FILE_TOO_LARGE
    assert result.error == (
        "File too large: 10.0MB (10485761 bytes), max 10.0MB (10485760 bytes)"
    )
    assert result.file_info.size == LIMIT + 1


def test_size_options(fs: FakeFilesystem) -> None:
    fs.create_file(f"{DOCS}/medium.txt", st_size=2048)
    validator = make_validator()

    small = FileValidationOptions(max_size=1024)
    assert validator.validate_file(f"{DOCS}/medium.txt", small).reason is (
        FileRejection.FILE_TOO_LARGE
    )
    skipped = FileValidationOptions(max_size=1024, check_size=False)
    assert validator.validate_file(f"{DOCS}/medium.txt", skipped).is_valid


def test_zero_size_limit(fs: FakeFilesystem) -> None:
    fs.create_file(f"{DOCS}/empty.txt")
    fs.create_file(f"{DOCS}/one.txt", contents="x")
    validator = make_validator(max_file_size=0)

    assert validator.validate_file(f"{DOCS}/empty.txt").is_valid
    assert not validator.validate_file(f"{DOCS}/one.txt").is_valid


def test_dangerous_extension_under_strict(fs: FakeFilesystem) -> None:
    result = make_validator().validate_file(f"{DOCS}/setup.exe")

    assert not result.is_valid
    assert result.reason is FileRejection.DANGEROUS_EXTENSION
    assert result.error == (
        "Dangerous file extension blocked in strict mode: .exe"
    )
    assert result.file_info.category is FileCategory.EXECUTABLE


def test_dangerous_extension_under_moderate(fs: FakeFilesystem) -> None:
    result = make_validator(SecurityLevel.MODERATE).validate_file(
        f"{DOCS}/setup.exe"
    )

    assert result.is_valid
    assert result.warnings == []


def test_dangerous_check_can_be_disabled(fs: FakeFilesystem) -> None:
    result = make_validator(block_dangerous_files=False).validate_file(
        f"{DOCS}/setup.exe"
    )

    assert result.is_valid
    assert result.warnings == ["Executable files may pose security risks"]


def test_archive_warning_under_strict(fs: FakeFilesystem) -> None:
    result = make_validator().validate_file(f"{DOCS}/bundle.zip")

    assert result.is_valid
    assert result.warnings == ["Archive files may contain executable content"]


def test_blocked_extension_beats_allowed(fs: FakeFilesystem) -> None:
    validator = make_validator(
        allowed_extensions={".log", ".txt"}, blocked_extensions={"LOG"}
    )

    result = validator.validate_file(f"{DOCS}/app.log")
    assert result.reason is FileRejection.EXTENSION_BLOCKED
    assert result.error == "File extension blocked: .log"
    assert validator.validate_file(f"{DOCS}/a.txt").is_valid


def test_allowed_extensions(fs: FakeFilesystem) -> None:
    validator = make_validator(allowed_extensions={"txt"})

    result = validator.validate_file(f"{DOCS}/readme.md")
    assert result.reason is FileRejection.EXTENSION_NOT_ALLOWED
    assert result.error == "File extension not allowed: .md"
    assert validator.validate_file(f"{DOCS}/readme.TXT").is_valid


def test_file_without_extension_skips_extension_gate(
    fs: FakeFilesystem,
) -> None:
    validator = make_validator(allowed_extensions={".txt"})
    result = validator.validate_file(f"{DOCS}/Makefile")

    assert result.is_valid
    assert result.file_info.extension == ""
    assert result.file_info.mime_type == DEFAULT_MIME_TYPE
    assert result.file_info.category is FileCategory.UNKNOWN


def test_extension_options_override_policy(fs: FakeFilesystem) -> None:
    validator = make_validator(blocked_extensions={".md"})
    options = FileValidationOptions(blocked_extensions=[])

    assert not validator.validate_file(f"{DOCS}/a.md").is_valid
    assert validator.validate_file(f"{DOCS}/a.md", options).is_valid
    unchecked = validator.validate_file(
        f"{DOCS}/setup.exe", FileValidationOptions(check_extension=False)
    )
    assert unchecked.is_valid
    assert unchecked.warnings == ["Executable files may pose security risks"]


def test_blocked_mime_type(fs: FakeFilesystem) -> None:
    result = make_validator(
        blocked_mime_types={"application/pdf"}
    ).validate_file(f"{DOCS}/report.pdf")

    assert result.reason is FileRejection.MIME_TYPE_BLOCKED
    assert result.error == "MIME type blocked: application/pdf"


def test_allowed_mime_types(fs: FakeFilesystem) -> None:
    validator = make_validator(allowed_mime_types={"Text/Plain"})

    assert validator.validate_file(f"{DOCS}/a.txt").is_valid
    result = validator.validate_file(f"{DOCS}/a.md")
    assert result.reason is FileRejection.MIME_TYPE_NOT_ALLOWED
    assert result.error == "MIME type not allowed: text/markdown"


def test_blocked_category(fs: FakeFilesystem) -> None:
    result = make_validator(
        blocked_categories={FileCategory.IMAGE}
    ).validate_file(f"{DOCS}/photo.png")

    assert result.reason is FileRejection.CATEGORY_BLOCKED
    assert result.error == "File category blocked: image"


def test_allowed_categories(fs: FakeFilesystem) -> None:
    validator = make_validator(allowed_categories={FileCategory.TEXT})

    result = validator.validate_file(f"{DOCS}/app.ts")
    assert result.reason is FileRejection.CATEGORY_NOT_ALLOWED
    assert result.error == "File category not allowed: code"
    # Unknown category is never restricted by category lists
    assert validator.validate_file(f"{DOCS}/blob.xyz").is_valid


@pytest.mark.parametrize("name", ["script.py", "index.html", "site.css"])
def test_text_mime_types_classify_as_text(
    fs: FakeFilesystem, name: str
) -> None:
    """Anything served as text/* is text, even source code."""
    text_only = make_validator(allowed_categories={FileCategory.TEXT})
    no_code = make_validator(blocked_categories={FileCategory.CODE})

    assert text_only.validate_file(f"{DOCS}/{name}").is_valid
    assert no_code.validate_file(f"{DOCS}/{name}").is_valid


def test_category_options_accept_strings(fs: FakeFilesystem) -> None:
    options = FileValidationOptions(blocked_categories=["media"])

    result = make_validator().validate_file(f"{DOCS}/song.mp3", options)

    assert result.reason is FileRejection.CATEGORY_BLOCKED


def test_first_failing_gate_wins(fs: FakeFilesystem) -> None:
    fs.create_file(f"{DOCS}/huge.log", st_size=LIMIT * 2)
    validator = make_validator(blocked_extensions={".log"})

    result = validator.validate_file(f"{DOCS}/huge.log")

    assert result.reason is FileRejection.FILE_TOO_LARGE


def test_access_error_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    def denied(path: Any, *args: Any, **kwargs: Any) -> Any:
        raise PermissionError(errno.EACCES, "Permission denied", path)

    monkeypatch.setattr(file_validation.os, "stat", denied)
    validator = make_validator()

    result = validator.validate_file(f"{DOCS}/locked.txt")
    assert not result.is_valid
    assert result.reason is FileRejection.FILE_ACCESS_ERROR
    assert result.error == "Cannot access file: Permission denied"

    result = validator.validate_file(
        f"{DOCS}/locked.txt", FileValidationOptions(check_size=False)
    )
    assert result.is_valid
    assert result.warnings == ["File size unavailable: Permission denied"]


def test_rejections_are_logged(fs: FakeFilesystem, on_log: Any) -> None:
    validator = make_validator(on_log=on_log)
    validator.validate_file(f"{DOCS}/setup.exe")

    (logged,) = [
        data
        for level, event, data in on_log.records
        if event == "file_validation" and not data["valid"]
    ]
    assert logged["reason"] == "DANGEROUS_EXTENSION"
    assert logged["path"] == f"{DOCS}/setup.exe"


def test_validator_follows_holder(fs: FakeFilesystem) -> None:
    holder = PolicyHolder(SecurityPolicy.for_directories([DOCS]))
    validator = FileTypeValidator(holder, on_log=None)

    assert not validator.validate_file(f"{DOCS}/a.exe").is_valid
    holder.swap(SecurityPolicy.for_directories([DOCS], "moderate"))
    assert validator.validate_file(f"{DOCS}/a.exe").is_valid
    assert validator.policy.security_level is SecurityLevel.MODERATE


def test_result_is_falsy_when_rejected(fs: FakeFilesystem) -> None:
    assert not make_validator().validate_file(os.path.join(DOCS, "x.bat"))
    assert make_validator().validate_file(os.path.join(DOCS, "x.txt"))
