"""Path canonicalization helpers.

The configuration resolver and the path validator both go through
:func:`canonicalize`, so an allowed directory and a requested path are
always expanded the same way and can be compared as plain strings.

Relative paths resolve against the home directory, never against the
process working directory.
"""

import os
from typing import Iterable, Optional


def home_directory() -> str:
    """Get the current user's home directory.

    Returns:
        Absolute, normalized home directory
    """
    return os.path.normpath(os.path.expanduser("~"))


def canonicalize(path: str, home: Optional[str] = None) -> str:
    """Turn a user-supplied path into a canonical absolute path.

    Args:
        path: Raw path; may start with ``~`` or be relative
        home: Home directory override (defaults to :func:`home_directory`)

    Returns:
        Absolute, normalized path with ``.`` segments and repeated
        separators collapsed
    """
    home_dir = home if home is not None else home_directory()
    if path == "~":
        return os.path.normpath(home_dir)
    if path.startswith("~/") or path.startswith("~" + os.sep):
        return os.path.normpath(os.path.join(home_dir, path[2:]))
    if not os.path.isabs(path):
        return os.path.normpath(os.path.join(home_dir, path))
    normalized = os.path.normpath(path)
    # POSIX keeps a leading "//"; fold it so comparisons stay exact
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def is_within(path: str, directories: Iterable[str]) -> bool:
    """Check whether a canonical path equals or lies inside a directory.

    The match is bounded by the path separator, so ``/allowed-foo`` is not
    inside ``/allowed``. Comparison is exact-string, without case folding.

    Args:
        path: Canonical path to test
        directories: Canonical directories

    Returns:
        True if ``path`` is one of ``directories`` or a descendant of one
    """
    for directory in directories:
        if path == directory:
            return True
        prefix = directory if directory.endswith(os.sep) else directory + os.sep
        if path.startswith(prefix):
            return True
    return False
