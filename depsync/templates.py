"""Loads per-ecosystem template documents from a directory."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Mapping, Tuple

from .logging import get_logger
from .models import DependabotConfig
from .serialization import ConfigParseFailed, parse_config

# Template directories named after the language rather than the Dependabot tag.
TEMPLATE_ALIASES: Mapping[str, str] = {
    "golang": "gomod",
    "go": "gomod",
    "python": "pip",
    "ruby": "bundler",
    "rust": "cargo",
    "php": "composer",
    "dotnet": "nuget",
    "dart": "pub",
    "elixir": "hex",
}

_TEMPLATE_NAMES = ("default.yml", "default.yaml")
_SUFFIXES = (".yml", ".yaml")

logger = get_logger("templates")


class TemplateError(RuntimeError):
    """Raised when a template file exists but cannot be parsed."""


def ecosystem_for(name: str) -> str:
    return TEMPLATE_ALIASES.get(name, name)


def load_templates(templates_dir: Path) -> Dict[str, DependabotConfig]:
    """Return ``ecosystem tag -> template`` for every template under ``templates_dir``.

    Both ``<dir>/<name>/default.yml`` and ``<dir>/<name>.yml`` layouts are
    read. A missing directory yields an empty mapping.
    """
    templates: Dict[str, DependabotConfig] = {}
    if not templates_dir.is_dir():
        logger.warning("Template directory %s does not exist", templates_dir)
        return templates

    for name, path in sorted(_iter_template_files(templates_dir)):
        tag = ecosystem_for(name)
        if tag in templates:
            logger.debug("Ignoring duplicate template %s for %s", path, tag)
            continue
        try:
            document = parse_config(path.read_text(encoding="utf-8"))
        except ConfigParseFailed as exc:
            raise TemplateError(f"Failed to parse {tag} template {path}: {exc}") from exc
        if document is None:
            logger.debug("Skipping empty template %s", path)
            continue
        templates[tag] = document
        logger.debug("Loaded template for %s from %s", tag, path)
    return templates


def _iter_template_files(templates_dir: Path) -> Iterator[Tuple[str, Path]]:
    for entry in templates_dir.iterdir():
        if entry.is_dir():
            for filename in _TEMPLATE_NAMES:
                candidate = entry / filename
                if candidate.is_file():
                    yield entry.name, candidate
                    break
        elif entry.is_file() and entry.suffix in _SUFFIXES:
            yield entry.stem, entry


__all__ = ["TEMPLATE_ALIASES", "TemplateError", "ecosystem_for", "load_templates"]
