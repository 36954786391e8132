"""Ecosystem detection from repository file trees."""

from __future__ import annotations

from .catalog import (
    DEFAULT_CATALOG,
    EcosystemSpec,
    Indicator,
    IndicatorCatalog,
    discover_catalog,
    specs_from_config,
)
from .detector import (
    EXCLUSION_TOPICS,
    DetectedEcosystem,
    DetectionFailed,
    EcosystemDetector,
    has_exclusion_topic,
)
from .matching import containing_directory, matches_pattern

__all__ = [
    "DEFAULT_CATALOG",
    "DetectedEcosystem",
    "DetectionFailed",
    "EXCLUSION_TOPICS",
    "EcosystemDetector",
    "EcosystemSpec",
    "Indicator",
    "IndicatorCatalog",
    "containing_directory",
    "discover_catalog",
    "has_exclusion_topic",
    "matches_pattern",
    "specs_from_config",
]
