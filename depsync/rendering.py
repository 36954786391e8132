"""Jinja2 rendering for pull request bodies and run reports."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

RESOURCES_DIR = Path(__file__).parent / "resources"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(RESOURCES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "html.j2"), default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render(template_name: str, **context: Any) -> str:
    """Render a bundled template with ``context``."""
    return _environment().get_template(template_name).render(**context)


__all__ = ["RESOURCES_DIR", "render"]
