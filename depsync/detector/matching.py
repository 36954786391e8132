"""Path helpers used by ecosystem detection."""

from __future__ import annotations

import posixpath
from fnmatch import fnmatchcase

from ..models import ROOT_DIRECTORY

_WILDCARDS = "*?["


def normalize_path(path: str) -> str:
    """Return a forward-slash path relative to the repository root."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def containing_directory(path: str) -> str:
    """Return the directory holding ``path`` as an absolute-style path.

    ``"package.json"`` maps to ``"/"`` and ``"web/app/package.json"`` to
    ``"/web/app"``.
    """
    directory = posixpath.dirname(normalize_path(path))
    if not directory or directory == ".":
        return ROOT_DIRECTORY
    return f"/{directory}"


def matches_pattern(path: str, pattern: str) -> bool:
    """Return True when ``path`` satisfies an indicator ``pattern``.

    Wildcard patterns are tried against the base name first, then the full
    path; ``*`` never crosses a ``/``. Plain patterns match the base name or
    the full path exactly.
    """
    normalized = normalize_path(path)
    base = posixpath.basename(normalized)
    if any(char in pattern for char in _WILDCARDS):
        return _segment_match(base, pattern) or _segment_match(normalized, pattern)
    return base == pattern or normalized == pattern


def _segment_match(target: str, pattern: str) -> bool:
    target_parts = target.split("/")
    pattern_parts = pattern.split("/")
    if len(target_parts) != len(pattern_parts):
        return False
    return all(
        fnmatchcase(part, pattern_part)
        for part, pattern_part in zip(target_parts, pattern_parts)
    )


__all__ = ["containing_directory", "matches_pattern", "normalize_path"]
