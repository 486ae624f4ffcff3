"""Path utilities for locations, scoped directories, and glob patterns."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

# =============================================================================
# Location Utilities
# =============================================================================


def normalize_location(path: str | os.PathLike[str]) -> Path:
    """Normalize a filesystem location to an absolute path.

    - Expands ``~``
    - Makes relative paths absolute against the current directory
    - Resolves ``..`` and symlinks (non-strict, the path need not exist)

    Examples:
        normalize_location("~/src/repo/") -> Path("/home/me/src/repo")
        normalize_location("/repo/a/../b") -> Path("/repo/b")
    """
    return Path(path).expanduser().resolve(strict=False)


def location_key(path: str | os.PathLike[str]) -> str:
    """Return the string key used to index bindings and cached contexts."""
    return str(normalize_location(path))


def is_within(path: str | os.PathLike[str], directory: str | os.PathLike[str]) -> bool:
    """Check whether *path* is *directory* or lies underneath it.

    ``/repo2/x`` is NOT within ``/repo``.
    """
    p = normalize_location(path)
    d = normalize_location(directory)
    return p == d or d in p.parents


def starting_directory(path: str | os.PathLike[str]) -> Path:
    """Return the directory an upward walk should start from.

    Files start at their parent; directories (and paths that do not exist)
    start at themselves.
    """
    p = normalize_location(path)
    if p.is_file():
        return p.parent
    return p


# =============================================================================
# Scope Utilities
# =============================================================================


def validate_relative_dir(path: str) -> tuple[bool, str]:
    """Validate a scoped directory for use as a pathspec under a root.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if not isinstance(path, str):
        return False, f"Scoped directory must be a string, got {type(path).__name__}"

    if not path.strip():
        return False, "Scoped directory is empty"

    if "\x00" in path:
        return False, "Scoped directory contains null bytes"

    if path.startswith(("/", "~")) or posixpath.isabs(path):
        return False, f"Scoped directory must be relative to the project root: {path}"

    normalized = posixpath.normpath(path.replace("\\", "/"))
    if normalized == ".":
        return False, f"Scoped directory refers to the root itself: {path}"
    if normalized == ".." or normalized.startswith("../"):
        return False, f"Scoped directory escapes the project root: {path}"

    return True, ""


def normalize_relative_dir(path: str) -> str:
    """Normalize a scoped directory.

    Examples:
        normalize_relative_dir("src/") -> "src"
        normalize_relative_dir("./lib//core") -> "lib/core"
    """
    return posixpath.normpath(path.strip().replace("\\", "/"))


def validate_pattern(pattern: str) -> tuple[bool, str]:
    """Validate a search glob.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if not isinstance(pattern, str):
        return False, f"Search pattern must be a string, got {type(pattern).__name__}"
    if not pattern:
        return False, "Search pattern is empty"
    if "\x00" in pattern:
        return False, "Search pattern contains null bytes"
    return True, ""


def join_scoped(directory: str, pattern: str) -> str:
    """Prefix a glob with a scoped directory.

    Examples:
        join_scoped("src", "*.cpp") -> "src/*.cpp"
        join_scoped("src", "/*.cpp") -> "src/*.cpp"
    """
    return f"{directory.rstrip('/')}/{pattern.lstrip('/')}"
