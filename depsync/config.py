"""Configuration loading for depsync (.depsync.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .utils import as_bool, as_dict, as_int, as_str, as_str_list

CONFIG_FILENAME = ".depsync.yml"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_EXCLUDE_TOPICS = ("exclude-dependabot", "no-dependabot", "skip-dependabot")
REPORT_FORMATS = ("json", "html", "markdown", "all")
MAX_CONCURRENCY = 50


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class DetectorConfig:
    """Detection tweaks: opt-out topics and additional indicators."""

    exclude_topics: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_TOPICS))
    extra_indicators: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PublishConfig:
    """How merged configurations reach repositories."""

    create_pr: bool = False
    branch_prefix: str = "dependabot-config"
    yaml_indent: int = 2


@dataclass
class ReportConfig:
    directory: Path = Path("reports")
    format: str = "all"


@dataclass
class SyncConfig:
    """Effective settings for a synchronization run."""

    root: Path
    org: Optional[str] = None
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    dry_run: bool = False
    repositories: List[str] = field(default_factory=list)
    exclude_archived: bool = True
    concurrency: int = 10
    templates_dir: Path = Path("configs")
    log_file: Optional[Path] = None
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def load_config(config_path: Path) -> SyncConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    config = SyncConfig(
        root=root,
        templates_dir=root / "configs",
        report=ReportConfig(directory=root / "reports"),
    )

    if not config_file.exists():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    github = as_dict(data.get("github"))
    config.org = as_str(github.get("org")) or None
    config.token = as_str(github.get("token")) or None
    config.api_url = as_str(github.get("api_url")) or DEFAULT_API_URL

    config.dry_run = as_bool(data.get("dry_run")) or False
    config.repositories = as_str_list(data.get("repositories"))
    exclude_archived = as_bool(data.get("exclude_archived"))
    if exclude_archived is not None:
        config.exclude_archived = exclude_archived
    concurrency = as_int(data.get("concurrency"))
    if concurrency is not None:
        config.concurrency = concurrency

    templates_dir = as_str(data.get("templates_dir"))
    if templates_dir:
        config.templates_dir = root / templates_dir
    log_file = as_str(data.get("log_file"))
    if log_file:
        config.log_file = root / log_file

    detector_data = as_dict(data.get("detector"))
    if "exclude_topics" in detector_data:
        config.detector.exclude_topics = as_str_list(detector_data.get("exclude_topics"))
    config.detector.extra_indicators = as_dict(detector_data.get("extra_indicators"))

    publish_data = as_dict(data.get("publish"))
    if publish_data:
        config.publish = PublishConfig(
            create_pr=as_bool(publish_data.get("create_pr")) or False,
            branch_prefix=as_str(publish_data.get("branch_prefix")) or "dependabot-config",
            yaml_indent=as_int(publish_data.get("yaml_indent")) or 2,
        )

    report_data = as_dict(data.get("report"))
    if report_data:
        directory = as_str(report_data.get("directory"))
        if directory:
            config.report.directory = root / directory
        config.report.format = as_str(report_data.get("format")) or "all"

    return config


def apply_environment(config: SyncConfig, environ: Mapping[str, str] | None = None) -> SyncConfig:
    """Overlay ``GITHUB_TOKEN``, ``GITHUB_ORG`` and ``DEPSYNC_CONCURRENCY``."""
    env = os.environ if environ is None else environ
    if env.get("GITHUB_TOKEN"):
        config.token = env["GITHUB_TOKEN"]
    if env.get("GITHUB_ORG"):
        config.org = env["GITHUB_ORG"]
    if env.get("GITHUB_API_URL"):
        config.api_url = env["GITHUB_API_URL"]
    concurrency = as_int(env.get("DEPSYNC_CONCURRENCY"))
    if concurrency is not None:
        config.concurrency = concurrency
    return config


def validate_config(config: SyncConfig) -> None:
    """Raise ConfigError when the settings cannot drive a sync run."""
    if not config.token:
        raise ConfigError("GitHub token is required (use --token or GITHUB_TOKEN)")
    if not config.org:
        raise ConfigError("GitHub organization is required (use --org or GITHUB_ORG)")
    if config.concurrency < 1:
        raise ConfigError("concurrency must be at least 1")
    if config.concurrency > MAX_CONCURRENCY:
        raise ConfigError(
            f"concurrency should not exceed {MAX_CONCURRENCY} to avoid rate limiting"
        )
    if not config.templates_dir.is_dir():
        raise ConfigError(f"config directory does not exist: {config.templates_dir}")
    if config.report.format not in REPORT_FORMATS:
        raise ConfigError(
            f"invalid report format: {config.report.format} "
            f"(must be one of {', '.join(REPORT_FORMATS)})"
        )
    if config.publish.yaml_indent < 1:
        raise ConfigError("yaml indent must be a positive number of spaces")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DetectorConfig",
    "PublishConfig",
    "REPORT_FORMATS",
    "ReportConfig",
    "SyncConfig",
    "apply_environment",
    "load_config",
    "validate_config",
]
