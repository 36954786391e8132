"""Collects per-repository outcomes and writes run reports."""

from __future__ import annotations

import json
import threading
import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .detector import DetectedEcosystem
from .logging import get_logger
from .rendering import render

STATUS_CONFIGURED = "configured"
STATUS_UPDATED = "updated"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

_FILENAME_PREFIX = "dependabot-report"


@dataclass
class RepositoryOutcome:
    """What happened to one repository during the run."""

    name: str
    status: str
    url: str = ""
    ecosystems: List[str] = field(default_factory=list)
    has_existing_config: bool = False
    config_updated: bool = False
    skip_reason: str = ""
    error: str = ""
    topics: List[str] = field(default_factory=list)


@dataclass
class ReportSummary:
    total_repositories: int = 0
    processed_repositories: int = 0
    configured_repositories: int = 0
    updated_repositories: int = 0
    skipped_repositories: int = 0
    failed_repositories: int = 0
    coverage_percentage: float = 0.0
    ecosystem_breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class Report:
    organization: str
    timestamp: str
    duration_seconds: float
    dry_run: bool
    summary: ReportSummary
    repositories: List[RepositoryOutcome]

    def by_status(self, status: str) -> List[RepositoryOutcome]:
        return [item for item in self.repositories if item.status == status]

    def recommendations(self) -> List[str]:
        notes: List[str] = []
        if self.summary.failed_repositories:
            notes.append("Review failed repositories and resolve issues")
        if self.summary.total_repositories and self.summary.coverage_percentage < 80:
            notes.append("Consider investigating skipped repositories to increase coverage")
        if len(self.summary.ecosystem_breakdown) > 5:
            notes.append("Consider creating specialized templates for frequently used ecosystems")
        return notes


class Reporter:
    """Thread-safe accumulator for repository outcomes."""

    def __init__(
        self,
        organization: str,
        *,
        dry_run: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.organization = organization
        self.dry_run = dry_run
        self._clock = clock
        self._started = clock()
        self._outcomes: List[RepositoryOutcome] = []
        self._lock = threading.Lock()
        self.logger = get_logger("reporter")

    def add_processed(
        self,
        name: str,
        detected: Iterable[DetectedEcosystem],
        *,
        has_existing_config: bool,
        updated: bool,
        url: str = "",
        topics: Iterable[str] = (),
    ) -> None:
        self._add(
            RepositoryOutcome(
                name=name,
                status=STATUS_UPDATED if updated else STATUS_CONFIGURED,
                url=url,
                ecosystems=[item.ecosystem for item in detected],
                has_existing_config=has_existing_config,
                config_updated=updated,
                topics=list(topics),
            )
        )

    def add_skipped(self, name: str, reason: str, *, url: str = "", topics: Iterable[str] = ()) -> None:
        self._add(
            RepositoryOutcome(
                name=name, status=STATUS_SKIPPED, url=url, skip_reason=reason, topics=list(topics)
            )
        )

    def add_failed(self, name: str, error: BaseException | str, *, url: str = "") -> None:
        self._add(RepositoryOutcome(name=name, status=STATUS_FAILED, url=url, error=str(error)))

    def _add(self, outcome: RepositoryOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def build(self) -> Report:
        """Snapshot the outcomes gathered so far, sorted by repository name."""
        with self._lock:
            outcomes = sorted(self._outcomes, key=lambda item: item.name)
        return Report(
            organization=self.organization,
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            duration_seconds=round(self._clock() - self._started, 3),
            dry_run=self.dry_run,
            summary=summarize(outcomes),
            repositories=outcomes,
        )

    def log_summary(self, report: Optional[Report] = None) -> None:
        report = report or self.build()
        summary = report.summary
        self.logger.info(
            "Processed %d repositories for %s: %d updated, %d already configured, "
            "%d skipped, %d failed (coverage %.1f%%)",
            summary.total_repositories,
            report.organization,
            summary.updated_repositories,
            summary.configured_repositories,
            summary.skipped_repositories,
            summary.failed_repositories,
            summary.coverage_percentage,
        )
        for outcome in report.by_status(STATUS_FAILED):
            self.logger.warning("%s failed: %s", outcome.name, outcome.error)


def summarize(outcomes: Iterable[RepositoryOutcome]) -> ReportSummary:
    summary = ReportSummary()
    breakdown: Counter[str] = Counter()
    for outcome in outcomes:
        summary.total_repositories += 1
        breakdown.update(outcome.ecosystems)
        if outcome.status == STATUS_CONFIGURED:
            summary.configured_repositories += 1
        elif outcome.status == STATUS_UPDATED:
            summary.updated_repositories += 1
        elif outcome.status == STATUS_SKIPPED:
            summary.skipped_repositories += 1
        elif outcome.status == STATUS_FAILED:
            summary.failed_repositories += 1
    summary.processed_repositories = (
        summary.total_repositories - summary.skipped_repositories - summary.failed_repositories
    )
    if summary.total_repositories:
        covered = summary.configured_repositories + summary.updated_repositories
        summary.coverage_percentage = round(covered / summary.total_repositories * 100, 1)
    summary.ecosystem_breakdown = dict(sorted(breakdown.items()))
    return summary


def save_report(report: Report, output_dir: Path, report_format: str = "all") -> List[Path]:
    """Write ``report`` in the requested format(s) and return the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(UTC).strftime("%Y-%m-%d-%H%M%S")
    base = output_dir / f"{_FILENAME_PREFIX}-{stamp}"

    formats = ("json", "html", "markdown") if report_format == "all" else (report_format,)
    written: List[Path] = []
    for fmt in formats:
        if fmt == "json":
            path = base.with_suffix(".json")
            path.write_text(json.dumps(asdict(report), indent=2) + "\n", encoding="utf-8")
        elif fmt == "markdown":
            path = base.with_suffix(".md")
            path.write_text(_render(report, "report.md.j2"), encoding="utf-8")
        elif fmt == "html":
            path = base.with_suffix(".html")
            path.write_text(_render(report, "report.html.j2"), encoding="utf-8")
        else:
            raise ValueError(f"Unknown report format: {fmt}")
        written.append(path)
    return written


def _render(report: Report, template_name: str) -> str:
    return render(
        template_name,
        report=report,
        updated=report.by_status(STATUS_UPDATED),
        configured=report.by_status(STATUS_CONFIGURED),
        skipped=report.by_status(STATUS_SKIPPED),
        failed=report.by_status(STATUS_FAILED),
    )


__all__ = [
    "Report",
    "ReportSummary",
    "Reporter",
    "RepositoryOutcome",
    "STATUS_CONFIGURED",
    "STATUS_FAILED",
    "STATUS_SKIPPED",
    "STATUS_UPDATED",
    "save_report",
    "summarize",
]
