"""Local checkout support for the ``detect`` and ``merge`` commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .github.client import CONFIG_PATHS
from .logging import get_logger
from .models import DependabotConfig
from .serialization import parse_config

logger = get_logger("local")

# Never descended into, whatever .gitignore says.
SKIPPED_DIRECTORIES = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".venv",
        "venv",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".terraform",
        "node_modules",
        "vendor",
    }
)


@dataclass(frozen=True)
class IgnoreRule:
    """One line of a root ``.gitignore``."""

    pattern: str
    directory_only: bool = False
    anchored: bool = False
    negate: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        text = line.strip()
        if not text or text.startswith("#"):
            return None
        negate = text.startswith("!")
        if negate:
            text = text[1:]
        directory_only = text.endswith("/")
        text = text.rstrip("/")
        # A slash anywhere but the end ties the rule to the root.
        anchored = "/" in text
        text = text.lstrip("/")
        if not text:
            return None
        return cls(text, directory_only, anchored, negate)

    def applies_to(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if not self.anchored:
            return fnmatchcase(rel_path.rsplit("/", 1)[-1], self.pattern)
        parts = rel_path.split("/")
        pattern_parts = self.pattern.split("/")
        return len(parts) == len(pattern_parts) and all(
            fnmatchcase(part, expected) for part, expected in zip(parts, pattern_parts)
        )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.is_file():
        return []
    lines = path.read_text(encoding="utf-8").splitlines()
    return [rule for rule in map(IgnoreRule.parse, lines) if rule is not None]


def is_ignored(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    """Apply ``rules`` in order; the last matching rule decides."""
    verdict = False
    for rule in rules:
        if rule.applies_to(rel_path, is_dir):
            verdict = not rule.negate
    return verdict


def _walk(directory: Path, prefix: str, rules: Sequence[IgnoreRule]) -> Iterator[str]:
    with os.scandir(directory) as scanner:
        entries = sorted(scanner, key=lambda entry: entry.name)

    subdirectories = []
    for entry in entries:
        rel_path = f"{prefix}{entry.name}"
        if entry.is_dir(follow_symlinks=False):
            if entry.name in SKIPPED_DIRECTORIES or is_ignored(rel_path, True, rules):
                continue
            subdirectories.append(entry)
        elif not is_ignored(rel_path, False, rules):
            yield rel_path

    for entry in subdirectories:
        yield from _walk(Path(entry.path), f"{prefix}{entry.name}/", rules)


def list_paths(root: Path) -> List[str]:
    """Return the checkout's file paths relative to ``root``.

    Files of a directory come before its subdirectories, each group sorted
    by name, so the listing is stable across platforms. Ignored directories
    are pruned, which means a negated rule cannot re-include a file below
    one (git behaves the same way).
    """
    base = root.expanduser().resolve()
    if not base.exists():
        raise FileNotFoundError(f"Repository path not found: {root}")
    if not base.is_dir():
        raise NotADirectoryError(f"Repository path is not a directory: {root}")

    rules = parse_gitignore(base / ".gitignore")
    paths = list(_walk(base, "", rules))
    logger.debug("Listed %d file(s) under %s (%d ignore rule(s))", len(paths), base, len(rules))
    return paths


def read_existing_config(root: Path) -> Tuple[Optional[DependabotConfig], Optional[Path]]:
    """Return the checkout's Dependabot config and the file it came from."""
    for relative in CONFIG_PATHS:
        candidate = root / relative
        if candidate.is_file():
            return parse_config(candidate.read_text(encoding="utf-8")), candidate
    return None, None


__all__ = [
    "IgnoreRule",
    "SKIPPED_DIRECTORIES",
    "is_ignored",
    "list_paths",
    "parse_gitignore",
    "read_existing_config",
]
