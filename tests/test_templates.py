"""Tests for template loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from depsync.templates import TemplateError, ecosystem_for, load_templates


def test_loads_nested_and_flat_layouts(templates_dir: Path) -> None:
    templates = load_templates(templates_dir)

    assert set(templates) == {"npm", "docker"}
    assert templates["npm"].updates[0].open_pull_requests_limit == 5
    assert templates["docker"].updates[0].schedule.interval == "daily"


def test_language_directories_map_to_ecosystem_tags(tmp_path: Path) -> None:
    (tmp_path / "golang").mkdir()
    (tmp_path / "golang" / "default.yaml").write_text(
        "version: 2\nupdates:\n  - package-ecosystem: gomod\n    directory: /\n",
        encoding="utf-8",
    )
    (tmp_path / "python.yml").write_text(
        "version: 2\nupdates:\n  - package-ecosystem: pip\n    directory: /\n",
        encoding="utf-8",
    )

    templates = load_templates(tmp_path)

    assert set(templates) == {"gomod", "pip"}


def test_missing_directory_yields_no_templates(tmp_path: Path) -> None:
    assert load_templates(tmp_path / "absent") == {}


def test_empty_and_unrelated_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "npm.yml").write_text("", encoding="utf-8")
    (tmp_path / "README.md").write_text("# templates", encoding="utf-8")
    (tmp_path / "pip").mkdir()

    assert load_templates(tmp_path) == {}


def test_invalid_template_raises(tmp_path: Path) -> None:
    (tmp_path / "npm.yml").write_text("version: [2\n", encoding="utf-8")

    with pytest.raises(TemplateError, match="npm"):
        load_templates(tmp_path)


def test_ecosystem_for_passes_through_unknown_names() -> None:
    assert ecosystem_for("golang") == "gomod"
    assert ecosystem_for("python") == "pip"
    assert ecosystem_for("npm") == "npm"
