"""Typed model of a Dependabot configuration document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

SCHEMA_VERSION = 2
ROOT_DIRECTORY = "/"

ROOT_ONLY_ECOSYSTEMS: FrozenSet[str] = frozenset(
    {"docker", "github-actions", "terraform", "gitsubmodule"}
)


def is_root_only(ecosystem: str) -> bool:
    """Return True when rules for ``ecosystem`` always apply repository-wide."""
    return ecosystem in ROOT_ONLY_ECOSYSTEMS


@dataclass
class Schedule:
    """When Dependabot checks for updates."""

    interval: str = ""
    day: str = ""
    time: str = ""
    timezone: str = ""


@dataclass
class GroupConfig:
    """Dependency grouping rule keyed by group name inside an update rule."""

    dependency_type: str = ""
    patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    update_types: List[str] = field(default_factory=list)


@dataclass
class CommitMessage:
    """Commit message conventions for Dependabot pull requests."""

    prefix: str = ""
    prefix_development: str = ""
    include: str = ""


@dataclass
class IgnoreCondition:
    dependency_name: str = ""
    versions: List[str] = field(default_factory=list)
    update_types: List[str] = field(default_factory=list)


@dataclass
class AllowCondition:
    dependency_name: str = ""
    dependency_type: str = ""


@dataclass
class UpdateRule:
    """One package-ecosystem/directory combination to monitor."""

    package_ecosystem: str
    directory: str = ROOT_DIRECTORY
    schedule: Schedule = field(default_factory=Schedule)
    open_pull_requests_limit: int = 0
    labels: List[str] = field(default_factory=list)
    reviewers: List[str] = field(default_factory=list)
    assignees: List[str] = field(default_factory=list)
    milestone: int = 0
    groups: Dict[str, GroupConfig] = field(default_factory=dict)
    versioning_strategy: str = ""
    commit_message: Optional[CommitMessage] = None
    target_branch: str = ""
    vendor: bool = False
    insecure_external_code_execution: List[str] = field(default_factory=list)
    rebase_strategy: str = ""
    ignore: List[IgnoreCondition] = field(default_factory=list)
    allow: List[AllowCondition] = field(default_factory=list)
    registries: List[str] = field(default_factory=list)

    def sort_key(self) -> tuple[str, str]:
        return (self.package_ecosystem, self.directory)


@dataclass
class DependabotConfig:
    """A complete ``dependabot.yml`` document."""

    version: int = SCHEMA_VERSION
    updates: List[UpdateRule] = field(default_factory=list)

    def find(
        self, ecosystem: str, directory: str, *, any_directory: bool = False
    ) -> Optional[UpdateRule]:
        """Return the first rule for ``ecosystem`` in ``directory``.

        With ``any_directory`` the stored directory is ignored, which is how
        root-only ecosystems are looked up.
        """
        for rule in self.updates:
            if rule.package_ecosystem != ecosystem:
                continue
            if any_directory or rule.directory == directory:
                return rule
        return None

    def ecosystems(self) -> List[str]:
        """Return ecosystem tags in first-seen order."""
        seen: List[str] = []
        for rule in self.updates:
            if rule.package_ecosystem not in seen:
                seen.append(rule.package_ecosystem)
        return seen


def sort_updates(updates: Iterable[UpdateRule]) -> List[UpdateRule]:
    """Return rules ordered by ecosystem then directory."""
    return sorted(updates, key=UpdateRule.sort_key)


def configs_equal(left: Optional[DependabotConfig], right: Optional[DependabotConfig]) -> bool:
    """Field-for-field equality of two documents; an absent document only equals another absent one."""
    if left is None or right is None:
        return left is None and right is None
    return left == right


__all__ = [
    "AllowCondition",
    "CommitMessage",
    "DependabotConfig",
    "GroupConfig",
    "IgnoreCondition",
    "ROOT_DIRECTORY",
    "ROOT_ONLY_ECOSYSTEMS",
    "SCHEMA_VERSION",
    "Schedule",
    "UpdateRule",
    "configs_equal",
    "is_root_only",
    "sort_updates",
]
