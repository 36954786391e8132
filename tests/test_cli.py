"""CLI parser and command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from depsync import cli
from depsync.cli import _build_parser, main
from depsync.github.client import GitHubClient
from tests._fixtures.github_stub import GitHubStub, StubRepo


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "detect"])
    assert args.verbose is True
    assert args.command == "detect"


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["sync", "--verbose"])
    assert args.verbose is True
    assert args.command == "sync"


def test_sync_flags_parse() -> None:
    args = _build_parser().parse_args(
        [
            "sync",
            "--org",
            "acme",
            "--dry-run",
            "--create-pr",
            "--repos",
            "web, api",
            "--report-format",
            "json",
            "--concurrency",
            "5",
        ]
    )
    assert args.org == "acme"
    assert args.dry_run is True
    assert args.create_pr is True
    assert args.repos == "web, api"
    assert args.report_format == "json"
    assert args.concurrency == 5


def test_sync_rejects_unknown_report_format() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["sync", "--report-format", "pdf"])


def test_merge_write_and_check_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["merge", "--write", "--check"])


def _checkout(root: Path) -> Path:
    (root / "web").mkdir(parents=True)
    (root / "package.json").write_text("{}", encoding="utf-8")
    (root / "web" / "package.json").write_text("{}", encoding="utf-8")
    (root / "Dockerfile").write_text("FROM scratch\n", encoding="utf-8")
    return root


def test_detect_prints_ecosystems(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _checkout(tmp_path / "repo")

    main(["detect", str(repo)])

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0].split() == ["docker", "0.90", "/"]
    assert lines[1].split() == ["npm", "0.80", "/,", "/web"]


def test_detect_reports_no_ecosystems(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["detect", str(tmp_path)])
    assert "No supported ecosystems detected" in capsys.readouterr().out


def test_detect_missing_path_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["detect", str(tmp_path / "missing")])
    assert excinfo.value.code == 1


def test_merge_prints_merged_config(
    tmp_path: Path, templates_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo = _checkout(tmp_path / "repo")

    main(["merge", str(repo), "--config", str(tmp_path), "--config-dir", str(templates_dir)])

    data = yaml.safe_load(capsys.readouterr().out)
    assert data["version"] == 2
    assert [(rule["package-ecosystem"], rule["directory"]) for rule in data["updates"]] == [
        ("docker", "/"),
        ("npm", "/"),
        ("npm", "/web"),
    ]
    assert not (repo / ".github").exists()


def test_merge_write_then_check(tmp_path: Path, templates_dir: Path) -> None:
    repo = _checkout(tmp_path / "repo")
    common = ["--config", str(tmp_path), "--config-dir", str(templates_dir)]

    with pytest.raises(SystemExit) as excinfo:
        main(["merge", str(repo), "--check", *common])
    assert excinfo.value.code == 1

    main(["merge", str(repo), "--write", *common])
    written = repo / ".github" / "dependabot.yml"
    assert written.exists()

    main(["merge", str(repo), "--check", *common])


def test_sync_requires_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_ORG", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main(["sync", "--config", str(tmp_path), "--org", "acme"])
    assert excinfo.value.code == 2


def test_sync_runs_against_stubbed_github(
    tmp_path: Path,
    templates_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    stub = GitHubStub(
        repos=[
            StubRepo(name="web", paths=["package.json"]),
            StubRepo(name="api", paths=["go.mod"]),
        ]
    )

    def _client(token: str, org: str, **kwargs) -> GitHubClient:
        assert token == "env-token"
        return GitHubClient(token, org, transport=stub, api_url=kwargs["api_url"])

    monkeypatch.setattr(cli, "GitHubClient", _client)
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    monkeypatch.delenv("DEPSYNC_CONCURRENCY", raising=False)
    report_dir = tmp_path / "reports"

    main(
        [
            "sync",
            "--config",
            str(tmp_path),
            "--org",
            "acme",
            "--config-dir",
            str(templates_dir),
            "--repos",
            "web",
            "--report-dir",
            str(report_dir),
            "--report-format",
            "json",
        ]
    )

    assert "Report saved to" in capsys.readouterr().out
    (report_path,) = report_dir.glob("dependabot-report-*.json")
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["organization"] == "acme"
    assert [item["name"] for item in report["repositories"]] == ["web"]
    assert ".github/dependabot.yml" in stub.repos["web"].files
    assert ".github/dependabot.yml" not in stub.repos["api"].files


def test_sync_dry_run_exit_code_reflects_failures(
    tmp_path: Path, templates_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    stub = GitHubStub(repos=[StubRepo(name="web", paths=["package.json"])])
    stub.fail_trees.add("web")
    monkeypatch.setattr(
        cli,
        "GitHubClient",
        lambda token, org, **kwargs: GitHubClient(token, org, transport=stub),
    )

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "sync",
                "--config",
                str(tmp_path),
                "--org",
                "acme",
                "--token",
                "t",
                "--dry-run",
                "--config-dir",
                str(templates_dir),
                "--report-dir",
                str(tmp_path / "reports"),
                "--report-format",
                "markdown",
            ]
        )
    assert excinfo.value.code == 1
    assert stub.writes == []
