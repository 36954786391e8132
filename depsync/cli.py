"""CLI entrypoints for depsync commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from . import __version__
from .config import (
    REPORT_FORMATS,
    ConfigError,
    SyncConfig,
    apply_environment,
    load_config,
    validate_config,
)
from .detector import DetectedEcosystem, EcosystemDetector, discover_catalog, specs_from_config
from .github.client import CONFIG_PATHS, GitHubClient
from .github.publisher import Publisher
from .local import list_paths, read_existing_config
from .logging import configure_logging
from .merge import MergeEngine
from .models import configs_equal
from .reporter import Reporter, save_report
from .serialization import ConfigParseFailed, dump_config
from .synchronizer import Synchronizer
from .templates import TemplateError, load_templates
from .utils import split_csv


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_config_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .depsync.yml or the directory containing it (defaults to current directory).",
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory containing per-ecosystem configuration templates.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depsync",
        description="Keep Dependabot configuration consistent across an organization's repositories.",
    )
    parser.add_argument("--version", action="version", version=f"depsync {__version__}")
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Detect ecosystems and synchronize dependabot.yml across repositories.",
    )
    _add_verbose_option(sync_parser, suppress_default=True)
    _add_config_options(sync_parser)
    sync_parser.add_argument("--org", default=None, help="GitHub organization (or GITHUB_ORG).")
    sync_parser.add_argument("--token", default=None, help="GitHub token (or GITHUB_TOKEN).")
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Compute changes without writing to any repository.",
    )
    sync_parser.add_argument(
        "--create-pr",
        action="store_true",
        default=None,
        help="Open pull requests instead of committing to the default branch.",
    )
    sync_parser.add_argument(
        "--repos",
        default=None,
        help="Comma-separated list of repositories to process (defaults to the whole organization).",
    )
    sync_parser.add_argument(
        "--include-archived",
        action="store_true",
        default=None,
        help="Also process archived repositories.",
    )
    sync_parser.add_argument(
        "--exclude-topics",
        default=None,
        help="Comma-separated repository topics that opt a repository out.",
    )
    sync_parser.add_argument("--report-dir", default=None, help="Directory for saved reports.")
    sync_parser.add_argument(
        "--report-format",
        choices=REPORT_FORMATS,
        default=None,
        help="Report format to write.",
    )
    sync_parser.add_argument(
        "--concurrency", type=int, default=None, help="Repositories processed in parallel."
    )
    sync_parser.add_argument(
        "--yaml-indent", type=int, default=None, help="Spaces used to indent written YAML."
    )

    detect_parser = subparsers.add_parser(
        "detect",
        help="List package ecosystems detected in a local checkout.",
    )
    _add_verbose_option(detect_parser, suppress_default=True)
    detect_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    detect_parser.add_argument("--config", default=None, help="Path to .depsync.yml.")

    merge_parser = subparsers.add_parser(
        "merge",
        help="Merge a local checkout's dependabot.yml with the organization templates.",
    )
    _add_verbose_option(merge_parser, suppress_default=True)
    _add_config_options(merge_parser)
    merge_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    merge_mode = merge_parser.add_mutually_exclusive_group()
    merge_mode.add_argument(
        "--write",
        action="store_true",
        help="Write the merged configuration into the checkout.",
    )
    merge_mode.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 when the checkout's configuration is out of date.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the depsync HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_options(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _resolve_sync_config(args: argparse.Namespace) -> SyncConfig:
    config = apply_environment(load_config(Path(args.config)))
    if args.org:
        config.org = args.org
    if args.token:
        config.token = args.token
    if args.dry_run:
        config.dry_run = True
    if args.create_pr:
        config.publish.create_pr = True
    if args.repos:
        config.repositories = split_csv(args.repos)
    if args.include_archived:
        config.exclude_archived = False
    if args.exclude_topics is not None:
        config.detector.exclude_topics = split_csv(args.exclude_topics)
    if args.config_dir:
        config.templates_dir = Path(args.config_dir)
    if args.report_dir:
        config.report.directory = Path(args.report_dir)
    if args.report_format:
        config.report.format = args.report_format
    if args.concurrency is not None:
        config.concurrency = args.concurrency
    if args.yaml_indent is not None:
        config.publish.yaml_indent = args.yaml_indent
    validate_config(config)
    return config


def _detector_for(config: SyncConfig) -> EcosystemDetector:
    extra = specs_from_config(config.detector.extra_indicators)
    return EcosystemDetector(discover_catalog(extra=extra))


def _engine_for(config: SyncConfig, detector: EcosystemDetector) -> MergeEngine:
    templates = load_templates(config.templates_dir)
    root_only = detector.catalog.root_only_tags()
    return MergeEngine(templates, root_only=root_only)


def _run_sync(args: argparse.Namespace) -> int:
    config = _resolve_sync_config(args)
    if config.log_file is not None:
        configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    detector = _detector_for(config)
    engine = _engine_for(config, detector)
    client = GitHubClient(config.token or "", config.org or "", api_url=config.api_url)
    publisher = Publisher(
        client,
        create_pr=config.publish.create_pr,
        branch_prefix=config.publish.branch_prefix,
        yaml_indent=config.publish.yaml_indent,
    )
    synchronizer = Synchronizer(
        client,
        engine,
        detector=detector,
        publisher=publisher,
        reporter=Reporter(client.org, dry_run=config.dry_run),
        exclude_topics=config.detector.exclude_topics,
        dry_run=config.dry_run,
        concurrency=config.concurrency,
    )
    report = synchronizer.run(config.repositories, exclude_archived=config.exclude_archived)
    for path in save_report(report, config.report.directory, config.report.format):
        print(f"Report saved to {_relativize(path)}")
    return 1 if report.summary.failed_repositories else 0


def _format_detected(detected: List[DetectedEcosystem]) -> str:
    if not detected:
        return "No supported ecosystems detected"
    width = max(len(item.ecosystem) for item in detected)
    lines = [
        f"{item.ecosystem:<{width}}  {item.confidence:.2f}  {', '.join(item.sorted_directories)}"
        for item in detected
    ]
    return "\n".join(lines)


def _run_detect(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config or args.path))
    detector = _detector_for(config)
    detected = detector.detect(list_paths(Path(args.path)))
    print(_format_detected(detected))
    return 0


def _run_merge(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    if args.config_dir:
        config.templates_dir = Path(args.config_dir)
    repo_root = Path(args.path).expanduser().resolve()

    detector = _detector_for(config)
    engine = _engine_for(config, detector)
    detected = detector.detect(list_paths(repo_root))
    existing, source = read_existing_config(repo_root)
    merged = engine.merge(existing, detected)
    changed = not configs_equal(existing, merged)

    if args.check:
        print("dependabot.yml is out of date" if changed else "dependabot.yml is up to date")
        return 1 if changed else 0

    rendered = dump_config(merged, indent=config.publish.yaml_indent)
    if not args.write:
        print(rendered, end="")
        return 0
    if not changed:
        print("dependabot.yml already up to date")
        return 0
    target = source or repo_root / CONFIG_PATHS[0]
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(rendered, encoding="utf-8")
    print(f"dependabot.yml written to {_relativize(target)}")
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    from .service import run_service

    config = load_config(Path(args.config))
    if args.config_dir:
        config.templates_dir = Path(args.config_dir)
    run_service(config, host=args.host, port=args.port)
    return 0


_COMMANDS = {
    "sync": _run_sync,
    "detect": _run_detect,
    "merge": _run_merge,
    "serve": _run_serve,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for depsync commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    handler = _COMMANDS.get(args.command)
    if handler is None:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")
    try:
        status = handler(args)
    except ConfigError as exc:
        parser.exit(2, f"Invalid options: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except (TemplateError, ConfigParseFailed) as exc:
        parser.exit(1, f"depsync {args.command} failed: {exc}\n")
    except RuntimeError as exc:
        parser.exit(1, f"depsync {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    if status:
        parser.exit(status)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
