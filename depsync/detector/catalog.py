"""Indicator catalog mapping ecosystem tags to weighted file patterns."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..models import ROOT_ONLY_ECOSYSTEMS
from ..utils import as_dict_list

_ENTRY_POINT_GROUP = "depsync.ecosystems"


@dataclass(frozen=True)
class Indicator:
    """A file pattern that signals an ecosystem, weighted by how conclusive it is."""

    pattern: str
    weight: float

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("Indicator pattern must not be empty")
        if not 0.0 < self.weight <= 1.0:
            raise ValueError(
                f"Indicator weight for '{self.pattern}' must be in (0, 1], got {self.weight}"
            )


@dataclass(frozen=True)
class EcosystemSpec:
    """Catalog entry for one ecosystem tag."""

    tag: str
    indicators: Tuple[Indicator, ...]
    root_only: bool = False
    name: Optional[str] = None

    @property
    def detector_name(self) -> str:
        return self.name or self.tag


class IndicatorCatalog:
    """Immutable, ordered mapping from ecosystem tag to its catalog entry."""

    def __init__(self, specs: Iterable[EcosystemSpec]) -> None:
        entries: Dict[str, EcosystemSpec] = {}
        for spec in specs:
            entries[spec.tag] = spec
        self._entries: Mapping[str, EcosystemSpec] = MappingProxyType(entries)

    def __iter__(self) -> Iterator[EcosystemSpec]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def get(self, tag: str) -> Optional[EcosystemSpec]:
        return self._entries.get(tag)

    @property
    def tags(self) -> List[str]:
        return list(self._entries)

    def root_only_tags(self) -> frozenset[str]:
        return frozenset(spec.tag for spec in self if spec.root_only)

    def extend(self, specs: Iterable[EcosystemSpec]) -> "IndicatorCatalog":
        """Return a new catalog where ``specs`` add to or replace existing tags."""
        merged = dict(self._entries)
        for spec in specs:
            merged[spec.tag] = spec
        return IndicatorCatalog(merged.values())


def _spec(tag: str, *indicators: Tuple[str, float]) -> EcosystemSpec:
    return EcosystemSpec(
        tag=tag,
        indicators=tuple(Indicator(pattern, weight) for pattern, weight in indicators),
        root_only=tag in ROOT_ONLY_ECOSYSTEMS,
    )


DEFAULT_CATALOG = IndicatorCatalog(
    (
        _spec(
            "npm",
            ("package-lock.json", 1.0),
            ("yarn.lock", 1.0),
            ("pnpm-lock.yaml", 1.0),
            ("package.json", 0.8),
        ),
        _spec("gomod", ("go.sum", 1.0), ("go.mod", 0.9)),
        _spec(
            "pip",
            ("poetry.lock", 1.0),
            ("Pipfile.lock", 1.0),
            ("requirements.txt", 0.8),
            ("setup.py", 0.7),
            ("pyproject.toml", 0.9),
        ),
        _spec(
            "docker",
            ("Dockerfile", 0.9),
            ("docker-compose.yml", 0.8),
            ("docker-compose.yaml", 0.8),
            ("Dockerfile.*", 0.9),
        ),
        _spec("maven", ("pom.xml", 0.9)),
        _spec(
            "gradle",
            ("gradle.lock", 1.0),
            ("build.gradle", 0.8),
            ("build.gradle.kts", 0.8),
        ),
        _spec("bundler", ("Gemfile.lock", 1.0), ("Gemfile", 0.8)),
        _spec("cargo", ("Cargo.lock", 1.0), ("Cargo.toml", 0.8)),
        _spec("composer", ("composer.lock", 1.0), ("composer.json", 0.8)),
        _spec(
            "nuget",
            ("packages.config", 0.8),
            ("*.csproj", 0.7),
            ("*.fsproj", 0.7),
            ("*.vbproj", 0.7),
        ),
        _spec(
            "github-actions",
            (".github/workflows/*.yml", 0.9),
            (".github/workflows/*.yaml", 0.9),
        ),
        _spec("terraform", ("*.tf", 0.8), (".terraform.lock.hcl", 1.0)),
        _spec("elm", ("elm.json", 0.9), ("elm-package.json", 0.8)),
        _spec("gitsubmodule", (".gitmodules", 0.9)),
        _spec("pub", ("pubspec.yaml", 0.9), ("pubspec.lock", 1.0)),
        _spec("hex", ("mix.exs", 0.9), ("mix.lock", 1.0)),
    )
)


def specs_from_config(entries: Mapping[str, Any]) -> List[EcosystemSpec]:
    """Build catalog entries from a ``tag -> [{pattern, weight}]`` mapping.

    Used for the ``detector.extra_indicators`` section of ``.depsync.yml``.
    """
    specs: List[EcosystemSpec] = []
    for tag, raw in entries.items():
        root_only = tag in ROOT_ONLY_ECOSYSTEMS
        items: Sequence[Any] = raw
        if isinstance(raw, dict):
            root_only = bool(raw.get("root_only", root_only))
            items = raw.get("indicators") or []
        indicators = tuple(
            Indicator(str(item.get("pattern", "")), float(item.get("weight", 1.0)))
            for item in as_dict_list(items)
        )
        if indicators:
            specs.append(EcosystemSpec(tag=str(tag), indicators=indicators, root_only=root_only))
    return specs


def discover_catalog(
    base: IndicatorCatalog = DEFAULT_CATALOG,
    extra: Iterable[EcosystemSpec] = (),
) -> IndicatorCatalog:
    """Return ``base`` extended by installed plugins and ``extra`` entries."""
    plugin_specs: List[EcosystemSpec] = []
    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to load ecosystem entry point '{entry.name}': {exc}") from exc
        plugin_specs.extend(_coerce_specs(entry.name, loaded))
    return base.extend(plugin_specs).extend(extra)


def _coerce_specs(name: str, obj: object) -> List[EcosystemSpec]:
    if callable(obj) and not isinstance(obj, EcosystemSpec):
        obj = obj()
    if isinstance(obj, EcosystemSpec):
        return [obj]
    if isinstance(obj, Iterable):
        specs = list(obj)
        if all(isinstance(spec, EcosystemSpec) for spec in specs):
            return specs
    raise TypeError(f"Ecosystem entry point '{name}' must provide EcosystemSpec values")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "DEFAULT_CATALOG",
    "EcosystemSpec",
    "Indicator",
    "IndicatorCatalog",
    "discover_catalog",
    "specs_from_config",
]
