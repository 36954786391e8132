"""Reconciles organization templates with a repository's existing configuration."""

from __future__ import annotations

import copy
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Tuple

from ..detector import DetectedEcosystem
from ..logging import get_logger
from ..models import (
    ROOT_DIRECTORY,
    ROOT_ONLY_ECOSYSTEMS,
    SCHEMA_VERSION,
    DependabotConfig,
    Schedule,
    UpdateRule,
    sort_updates,
)
from .policies import merge_rule

DEFAULT_INTERVAL = "weekly"
DEFAULT_LABELS: Tuple[str, ...] = ("dependencies",)
DEFAULT_PR_LIMIT = 10

_RuleKey = Tuple[str, str]


def default_rule(ecosystem: str, directory: str) -> UpdateRule:
    """Minimal rule used when no template exists for a newly configured ecosystem."""
    return UpdateRule(
        package_ecosystem=ecosystem,
        directory=directory,
        schedule=Schedule(interval=DEFAULT_INTERVAL),
        open_pull_requests_limit=DEFAULT_PR_LIMIT,
        labels=list(DEFAULT_LABELS),
    )


class MergeEngine:
    """Produces the merged document for one repository.

    ``templates`` maps an ecosystem tag to the organization's canonical
    document for it. The engine never mutates its inputs and keeps no state
    between calls, so one instance can serve concurrent workers.
    """

    def __init__(
        self,
        templates: Mapping[str, DependabotConfig],
        *,
        root_only: AbstractSet[str] = ROOT_ONLY_ECOSYSTEMS,
    ) -> None:
        self.templates = templates
        self.root_only = frozenset(root_only)
        self.logger = get_logger("merge")

    def merge(
        self,
        existing: Optional[DependabotConfig],
        detected: Iterable[DetectedEcosystem],
    ) -> DependabotConfig:
        """Return the merged document; ``existing`` is None for unconfigured repositories."""
        ordered = sorted(detected, key=lambda item: item.ecosystem)
        if existing is None:
            rules = self._create(ordered)
        else:
            rules = self._reconcile(existing, ordered)
        return DependabotConfig(version=SCHEMA_VERSION, updates=sort_updates(rules.values()))

    # ------------------------------------------------------------------
    # Internal helpers

    def _create(self, detected: List[DetectedEcosystem]) -> Dict[_RuleKey, UpdateRule]:
        produced: Dict[_RuleKey, UpdateRule] = {}
        for ecosystem in detected:
            template = self._template_for(ecosystem)
            for directory in self._directories(ecosystem):
                key = (ecosystem.ecosystem, directory)
                if key in produced:
                    continue
                if template is None:
                    produced[key] = default_rule(ecosystem.ecosystem, directory)
                    self.logger.debug("No template for %s; using defaults in %s", *key)
                else:
                    produced[key] = self._instantiate(template, ecosystem.ecosystem, directory)
        return produced

    def _reconcile(
        self, existing: DependabotConfig, detected: List[DetectedEcosystem]
    ) -> Dict[_RuleKey, UpdateRule]:
        produced: Dict[_RuleKey, UpdateRule] = {}
        for ecosystem in detected:
            template = self._template_for(ecosystem)
            if template is None:
                continue
            root_only = self._is_root_only(ecosystem.ecosystem)
            for directory in self._directories(ecosystem):
                key = (ecosystem.ecosystem, directory)
                if key in produced:
                    continue
                match = existing.find(ecosystem.ecosystem, directory, any_directory=root_only)
                if match is None:
                    produced[key] = self._instantiate(template, ecosystem.ecosystem, directory)
                    self.logger.debug("Added %s rule for %s", *key)
                    continue
                merged = match
                for template_rule in template.updates:
                    merged = merge_rule(merged, template_rule)
                merged.directory = directory
                produced[key] = merged
                self.logger.debug("Merged existing %s rule for %s", *key)

        for rule in existing.updates:
            root_only = self._is_root_only(rule.package_ecosystem)
            directory = ROOT_DIRECTORY if root_only else rule.directory
            key = (rule.package_ecosystem, directory)
            if key in produced:
                continue
            carried = copy.deepcopy(rule)
            carried.directory = directory
            produced[key] = carried
            self.logger.debug("Carried forward %s rule for %s", *key)
        return produced

    def _template_for(self, ecosystem: DetectedEcosystem) -> Optional[DependabotConfig]:
        template = self.templates.get(ecosystem.ecosystem) or self.templates.get(ecosystem.name)
        if template is None or not template.updates:
            return None
        return template

    def _instantiate(self, template: DependabotConfig, ecosystem: str, directory: str) -> UpdateRule:
        first, *rest = template.updates
        rule = copy.deepcopy(first)
        for template_rule in rest:
            rule = merge_rule(rule, template_rule)
        rule.package_ecosystem = ecosystem
        rule.directory = directory
        return rule

    def _directories(self, ecosystem: DetectedEcosystem) -> List[str]:
        if self._is_root_only(ecosystem.ecosystem):
            return [ROOT_DIRECTORY]
        return ecosystem.sorted_directories

    def _is_root_only(self, ecosystem: str) -> bool:
        return ecosystem in self.root_only


def merge(
    existing: Optional[DependabotConfig],
    detected: Iterable[DetectedEcosystem],
    templates: Mapping[str, DependabotConfig],
) -> DependabotConfig:
    """Merge ``existing`` with ``templates`` for the ``detected`` ecosystems."""
    return MergeEngine(templates).merge(existing, detected)


__all__ = [
    "DEFAULT_INTERVAL",
    "DEFAULT_LABELS",
    "DEFAULT_PR_LIMIT",
    "MergeEngine",
    "default_rule",
    "merge",
]
