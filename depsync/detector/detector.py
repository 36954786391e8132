"""Infers package ecosystems from a repository file listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Set

from ..logging import get_logger
from ..models import ROOT_DIRECTORY
from .catalog import DEFAULT_CATALOG, IndicatorCatalog
from .matching import containing_directory, matches_pattern

EXCLUSION_TOPICS: FrozenSet[str] = frozenset(
    {"no-dependabot", "skip-dependabot", "exclude-dependabot"}
)


class DetectionFailed(RuntimeError):
    """Raised when the repository file listing could not be obtained."""


@dataclass(frozen=True)
class DetectedEcosystem:
    """An ecosystem found in a repository together with where and how surely."""

    name: str
    ecosystem: str
    directories: FrozenSet[str] = field(default_factory=frozenset)
    confidence: float = 0.0

    @property
    def sorted_directories(self) -> List[str]:
        return sorted(self.directories)


@dataclass
class _Evidence:
    name: str
    confidence: float = 0.0
    directories: Set[str] = field(default_factory=set)


class EcosystemDetector:
    """Matches file paths against an indicator catalog."""

    def __init__(self, catalog: IndicatorCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self.logger = get_logger("detector")

    def detect(self, paths: Iterable[str]) -> List[DetectedEcosystem]:
        """Return detected ecosystems, most confident first."""
        evidence: Dict[str, _Evidence] = {}
        for path in paths:
            directory = containing_directory(path)
            for spec in self.catalog:
                for indicator in spec.indicators:
                    if not matches_pattern(path, indicator.pattern):
                        continue
                    entry = evidence.setdefault(spec.tag, _Evidence(name=spec.detector_name))
                    entry.confidence = max(entry.confidence, indicator.weight)
                    entry.directories.add(ROOT_DIRECTORY if spec.root_only else directory)

        detected = [
            DetectedEcosystem(
                name=entry.name,
                ecosystem=tag,
                directories=frozenset(entry.directories),
                confidence=entry.confidence,
            )
            for tag, entry in evidence.items()
        ]
        detected.sort(key=lambda item: (-item.confidence, item.ecosystem))
        for item in detected:
            self.logger.debug(
                "Detected %s (confidence %.2f) in %s",
                item.ecosystem,
                item.confidence,
                ", ".join(item.sorted_directories),
            )
        return detected

    def detect_from(self, list_paths: Callable[[], Iterable[str]]) -> List[DetectedEcosystem]:
        """Fetch a listing with ``list_paths`` and detect ecosystems in it."""
        try:
            paths = list(list_paths())
        except Exception as exc:
            raise DetectionFailed(f"Unable to list repository files: {exc}") from exc
        return self.detect(paths)


def has_exclusion_topic(
    topics: Iterable[str], vocabulary: Iterable[str] = EXCLUSION_TOPICS
) -> bool:
    """Return True when any topic opts the repository out of syncing."""
    return not set(vocabulary).isdisjoint(topics)


__all__ = [
    "DetectedEcosystem",
    "DetectionFailed",
    "EXCLUSION_TOPICS",
    "EcosystemDetector",
    "has_exclusion_topic",
]
