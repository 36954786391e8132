"""Per-repository sync pipeline run across an organization with a bounded worker pool."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .detector import (
    EXCLUSION_TOPICS,
    DetectedEcosystem,
    DetectionFailed,
    EcosystemDetector,
    has_exclusion_topic,
)
from .github.client import GitHubClient, GitHubError, Repository
from .github.publisher import PublishResult, Publisher
from .logging import get_logger, repository_logger
from .merge import MergeEngine
from .models import DependabotConfig, configs_equal
from .reporter import Report, Reporter
from .serialization import ConfigParseFailed

SKIP_EXCLUDED = "has exclusion topic"
SKIP_NO_ECOSYSTEMS = "no supported ecosystems detected"


@dataclass
class RepositoryResult:
    """Everything computed for one repository."""

    name: str
    status: str
    detected: List[DetectedEcosystem] = field(default_factory=list)
    existing: Optional[DependabotConfig] = None
    merged: Optional[DependabotConfig] = None
    published: Optional[PublishResult] = None
    reason: str = ""


class Synchronizer:
    """Detects, merges and publishes Dependabot configuration for many repositories."""

    def __init__(
        self,
        client: GitHubClient,
        engine: MergeEngine,
        *,
        detector: EcosystemDetector | None = None,
        publisher: Publisher | None = None,
        reporter: Reporter | None = None,
        exclude_topics: Iterable[str] = EXCLUSION_TOPICS,
        dry_run: bool = False,
        concurrency: int = 10,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.client = client
        self.engine = engine
        self.detector = detector or EcosystemDetector()
        self.publisher = publisher or Publisher(client)
        self.reporter = reporter or Reporter(client.org, dry_run=dry_run)
        self.exclude_topics = frozenset(exclude_topics)
        self.dry_run = dry_run
        self.concurrency = concurrency
        self.logger = get_logger("synchronizer")

    def run(
        self, names: Sequence[str] | None = None, *, exclude_archived: bool = True
    ) -> Report:
        """Process the named repositories, or the whole organization, and return the report."""
        self.logger.info("Starting Dependabot configuration sync for %s", self.client.org)
        if self.dry_run:
            self.logger.info("Running in dry-run mode; no changes will be made")

        repositories = self._resolve_repositories(names, exclude_archived=exclude_archived)
        self.logger.info("Found %d repositories to process", len(repositories))

        with ThreadPoolExecutor(
            max_workers=self.concurrency, thread_name_prefix="depsync"
        ) as executor:
            list(executor.map(self.process_repository, repositories))

        report = self.reporter.build()
        self.reporter.log_summary(report)
        return report

    def process_repository(self, repository: Repository) -> RepositoryResult:
        """Run the pipeline for one repository; failures are recorded, not raised."""
        try:
            return self._process(repository)
        except (DetectionFailed, GitHubError, ConfigParseFailed) as exc:
            self.logger.error("Failed to process %s: %s", repository.name, exc)
            self.reporter.add_failed(repository.name, exc, url=repository.html_url)
            return RepositoryResult(name=repository.name, status="failed", reason=str(exc))

    def _process(self, repository: Repository) -> RepositoryResult:
        name = repository.name
        log = repository_logger("synchronizer", name)
        log.debug("processing")

        if has_exclusion_topic(repository.topics, self.exclude_topics):
            log.debug("skipping, %s", SKIP_EXCLUDED)
            self.reporter.add_skipped(
                name, SKIP_EXCLUDED, url=repository.html_url, topics=repository.topics
            )
            return RepositoryResult(name=name, status="skipped", reason=SKIP_EXCLUDED)

        detected = self.detector.detect_from(lambda: self.client.list_tree_paths(repository))
        if not detected:
            log.debug("skipping, %s", SKIP_NO_ECOSYSTEMS)
            self.reporter.add_skipped(
                name, SKIP_NO_ECOSYSTEMS, url=repository.html_url, topics=repository.topics
            )
            return RepositoryResult(name=name, status="skipped", reason=SKIP_NO_ECOSYSTEMS)

        existing = self.client.get_existing_config(repository)
        merged = self.engine.merge(existing, detected)

        if existing is not None and configs_equal(existing, merged):
            log.info("already configured")
            self.reporter.add_processed(
                name,
                detected,
                has_existing_config=True,
                updated=False,
                url=repository.html_url,
                topics=repository.topics,
            )
            return RepositoryResult(
                name=name, status="configured", detected=detected, existing=existing, merged=merged
            )

        published = None
        if not self.dry_run:
            published = self.publisher.publish(repository, merged)

        self.reporter.add_processed(
            name,
            detected,
            has_existing_config=existing is not None,
            updated=True,
            url=repository.html_url,
            topics=repository.topics,
        )
        action = "would be updated" if self.dry_run else (
            "PR created" if published and published.mode == "pull_request" else "updated"
        )
        log.info(
            "%s (ecosystems: %s)",
            action,
            ", ".join(item.ecosystem for item in detected),
        )
        return RepositoryResult(
            name=name,
            status="updated",
            detected=detected,
            existing=existing,
            merged=merged,
            published=published,
        )

    def _resolve_repositories(
        self, names: Sequence[str] | None, *, exclude_archived: bool
    ) -> List[Repository]:
        if not names:
            return self.client.list_repositories(exclude_archived=exclude_archived)
        repositories: List[Repository] = []
        for name in names:
            try:
                repositories.append(self.client.get_repository(name))
            except GitHubError as exc:
                self.logger.warning("Failed to get repository %s: %s", name, exc)
                self.reporter.add_failed(name, exc)
        return repositories


__all__ = ["RepositoryResult", "SKIP_EXCLUDED", "SKIP_NO_ECOSYSTEMS", "Synchronizer"]
