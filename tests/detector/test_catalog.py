"""Tests for the indicator catalog and its extension points."""

from __future__ import annotations

import pytest

from depsync.detector import catalog as catalog_module
from depsync.detector.catalog import (
    DEFAULT_CATALOG,
    EcosystemSpec,
    Indicator,
    discover_catalog,
    specs_from_config,
)


def test_default_catalog_covers_supported_ecosystems() -> None:
    assert set(DEFAULT_CATALOG.tags) == {
        "npm",
        "gomod",
        "pip",
        "docker",
        "maven",
        "gradle",
        "bundler",
        "cargo",
        "composer",
        "nuget",
        "github-actions",
        "terraform",
        "elm",
        "gitsubmodule",
        "pub",
        "hex",
    }
    assert DEFAULT_CATALOG.root_only_tags() == frozenset(
        {"docker", "github-actions", "terraform", "gitsubmodule"}
    )


@pytest.mark.parametrize("weight", [0.0, -0.5, 1.5])
def test_indicator_rejects_out_of_range_weight(weight: float) -> None:
    with pytest.raises(ValueError):
        Indicator("package.json", weight)


def test_extend_replaces_and_adds_without_mutating_base() -> None:
    custom_npm = EcosystemSpec(tag="npm", indicators=(Indicator("bun.lockb", 1.0),))
    swift = EcosystemSpec(tag="swift", indicators=(Indicator("Package.swift", 0.9),))

    extended = DEFAULT_CATALOG.extend([custom_npm, swift])

    assert extended.get("npm") is custom_npm
    assert "swift" in extended
    assert "swift" not in DEFAULT_CATALOG
    assert DEFAULT_CATALOG.get("npm") is not custom_npm
    assert len(extended) == len(DEFAULT_CATALOG) + 1


def test_specs_from_config_accepts_list_and_mapping_forms() -> None:
    specs = specs_from_config(
        {
            "swift": [{"pattern": "Package.swift", "weight": 0.9}],
            "helm": {"root_only": True, "indicators": [{"pattern": "Chart.yaml"}]},
            "empty": [],
        }
    )

    by_tag = {spec.tag: spec for spec in specs}
    assert set(by_tag) == {"swift", "helm"}
    assert by_tag["swift"].indicators == (Indicator("Package.swift", 0.9),)
    assert by_tag["swift"].root_only is False
    assert by_tag["helm"].root_only is True
    assert by_tag["helm"].indicators[0].weight == 1.0


def test_discover_catalog_loads_entry_points(monkeypatch: pytest.MonkeyPatch) -> None:
    swift = EcosystemSpec(tag="swift", indicators=(Indicator("Package.swift", 0.9),))

    class _EntryPoint:
        name = "swift"

        def load(self):
            return lambda: [swift]

    monkeypatch.setattr(catalog_module, "_iter_entry_points", lambda: [_EntryPoint()])

    catalog = discover_catalog()

    assert catalog.get("swift") is swift
    assert "npm" in catalog


def test_discover_catalog_rejects_invalid_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    class _EntryPoint:
        name = "broken"

        def load(self):
            return 42

    monkeypatch.setattr(catalog_module, "_iter_entry_points", lambda: [_EntryPoint()])

    with pytest.raises(TypeError, match="broken"):
        discover_catalog()


def test_discover_catalog_applies_extra_last(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(catalog_module, "_iter_entry_points", lambda: [])
    override = EcosystemSpec(tag="npm", indicators=(Indicator("package.json", 0.5),))

    catalog = discover_catalog(extra=[override])

    assert catalog.get("npm") is override
