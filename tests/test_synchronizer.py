"""Tests for the organization sync pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from depsync.github.client import GitHubClient, GitHubError
from depsync.github.publisher import Publisher
from depsync.merge import MergeEngine
from depsync.reporter import STATUS_CONFIGURED, STATUS_FAILED, STATUS_SKIPPED, STATUS_UPDATED
from depsync.synchronizer import SKIP_EXCLUDED, SKIP_NO_ECOSYSTEMS, Synchronizer
from depsync.templates import load_templates
from tests._fixtures.github_stub import GitHubStub, StubRepo


def _synchronizer(stub: GitHubStub, templates_dir: Path, **kwargs) -> Synchronizer:
    client = GitHubClient("token", stub.org, transport=stub)
    engine = MergeEngine(load_templates(templates_dir))
    return Synchronizer(client, engine, publisher=Publisher(client), **kwargs)


def _statuses(report) -> dict[str, str]:
    return {item.name: item.status for item in report.repositories}


def test_run_processes_every_repository(templates_dir: Path) -> None:
    stub = GitHubStub(
        repos=[
            StubRepo(name="web", paths=["package.json", "Dockerfile"]),
            StubRepo(name="docs", paths=["README.md"]),
            StubRepo(name="frozen", paths=["package.json"], topics=["no-dependabot"]),
            StubRepo(name="broken"),
        ]
    )
    stub.fail_trees.add("broken")

    report = _synchronizer(stub, templates_dir, concurrency=2).run()

    assert _statuses(report) == {
        "web": STATUS_UPDATED,
        "docs": STATUS_SKIPPED,
        "frozen": STATUS_SKIPPED,
        "broken": STATUS_FAILED,
    }
    outcomes = {item.name: item for item in report.repositories}
    assert outcomes["docs"].skip_reason == SKIP_NO_ECOSYSTEMS
    assert outcomes["frozen"].skip_reason == SKIP_EXCLUDED
    assert "Unable to list repository files" in outcomes["broken"].error
    assert outcomes["web"].ecosystems == ["docker", "npm"]

    written = yaml.safe_load(stub.repos["web"].files[".github/dependabot.yml"])
    assert [(rule["package-ecosystem"], rule["directory"]) for rule in written["updates"]] == [
        ("docker", "/"),
        ("npm", "/"),
    ]


def test_already_configured_repository_is_not_written(templates_dir: Path) -> None:
    stub = GitHubStub(repos=[StubRepo(name="web", paths=["package.json"])])
    synchronizer = _synchronizer(stub, templates_dir)
    synchronizer.run()
    assert len(stub.writes) == 1

    second = _synchronizer(stub, templates_dir).run()

    assert _statuses(second) == {"web": STATUS_CONFIGURED}
    assert len(stub.writes) == 1


def test_dry_run_never_writes(templates_dir: Path) -> None:
    stub = GitHubStub(repos=[StubRepo(name="web", paths=["package.json"])])

    report = _synchronizer(stub, templates_dir, dry_run=True).run()

    assert _statuses(report) == {"web": STATUS_UPDATED}
    assert report.dry_run is True
    assert stub.writes == []
    assert stub.paths_requested("PUT") == []


def test_invalid_existing_config_is_reported_as_failure(templates_dir: Path) -> None:
    stub = GitHubStub(
        repos=[
            StubRepo(
                name="web",
                paths=["package.json"],
                files={".github/dependabot.yml": "updates: [\n"},
            )
        ]
    )

    report = _synchronizer(stub, templates_dir).run()

    assert _statuses(report) == {"web": STATUS_FAILED}
    assert stub.writes == []


def test_named_repositories_and_lookup_failures(templates_dir: Path) -> None:
    stub = GitHubStub(
        repos=[
            StubRepo(name="web", paths=["package.json"]),
            StubRepo(name="api", paths=["go.mod"]),
        ]
    )

    report = _synchronizer(stub, templates_dir).run(["web", "ghost"])

    assert _statuses(report) == {"web": STATUS_UPDATED, "ghost": STATUS_FAILED}
    assert ".github/dependabot.yml" not in stub.repos["api"].files


def test_custom_exclusion_topics(templates_dir: Path) -> None:
    stub = GitHubStub(repos=[StubRepo(name="web", paths=["package.json"], topics=["frozen"])])

    report = _synchronizer(stub, templates_dir, exclude_topics=["frozen"]).run()

    assert _statuses(report) == {"web": STATUS_SKIPPED}


def test_process_repository_returns_merged_result(templates_dir: Path) -> None:
    stub = GitHubStub(repos=[StubRepo(name="web", paths=["package.json", "web/package.json"])])
    synchronizer = _synchronizer(stub, templates_dir, dry_run=True)
    repository = synchronizer.client.get_repository("web")

    result = synchronizer.process_repository(repository)

    assert result.status == "updated"
    assert result.existing is None
    assert result.merged is not None
    assert [rule.directory for rule in result.merged.updates] == ["/", "/web"]
    assert result.published is None


def test_concurrency_must_be_positive(templates_dir: Path) -> None:
    with pytest.raises(ValueError):
        _synchronizer(GitHubStub(), templates_dir, concurrency=0)


def test_timed_out_repository_does_not_stop_the_run(templates_dir: Path) -> None:
    stub = GitHubStub(
        repos=[
            StubRepo(name="web", paths=["package.json"]),
            StubRepo(name="slow", paths=["package.json"]),
        ]
    )

    def transport(request):
        if "/repos/acme/slow/contents/" in request.url:
            raise GitHubError(f"GitHub request to {request.url} failed: TimeoutError()")
        return stub(request)

    client = GitHubClient("token", stub.org, transport=transport)
    synchronizer = Synchronizer(
        client, MergeEngine(load_templates(templates_dir)), publisher=Publisher(client)
    )

    report = synchronizer.run()

    assert _statuses(report) == {"web": STATUS_UPDATED, "slow": STATUS_FAILED}
