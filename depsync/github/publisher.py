"""Writes merged Dependabot configurations back to repositories."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from ..logging import get_logger
from ..models import DependabotConfig
from ..rendering import render
from ..serialization import dump_config
from .client import CONFIG_PATHS, GitHubClient, Repository

PR_TITLE = "Configure Dependabot for dependency updates"
CREATE_MESSAGE = "Configure Dependabot for dependency updates"
UPDATE_MESSAGE = "Update Dependabot configuration"


@dataclass
class PublishResult:
    """Outcome of writing a configuration to one repository."""

    mode: str
    branch: str
    url: str = ""


def build_pr_body(config: DependabotConfig) -> str:
    """Return the markdown description for a configuration pull request."""
    return render(
        "pull_request.md.j2",
        rules=config.updates,
        grouped=any(rule.groups for rule in config.updates),
    )


class Publisher:
    """Commits a configuration directly or proposes it through a pull request."""

    def __init__(
        self,
        client: GitHubClient,
        *,
        create_pr: bool = False,
        branch_prefix: str = "dependabot-config",
        yaml_indent: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.create_pr = create_pr
        self.branch_prefix = branch_prefix
        self.yaml_indent = yaml_indent
        self._clock = clock
        self.logger = get_logger("publisher")

    def publish(self, repository: Repository, config: DependabotConfig) -> PublishResult:
        content = dump_config(config, indent=self.yaml_indent)
        if self.create_pr:
            return self._open_pull_request(repository, config, content)
        return self._commit(repository, content)

    def _commit(self, repository: Repository, content: str) -> PublishResult:
        path = CONFIG_PATHS[0]
        _, sha = self.client.get_file(repository, path)
        message = UPDATE_MESSAGE if sha else CREATE_MESSAGE
        self.client.create_or_update_file(
            repository,
            path,
            content,
            message=message,
            branch=repository.default_branch,
            sha=sha,
        )
        self.logger.info("Committed %s to %s@%s", path, repository.name, repository.default_branch)
        return PublishResult(mode="commit", branch=repository.default_branch)

    def _open_pull_request(
        self, repository: Repository, config: DependabotConfig, content: str
    ) -> PublishResult:
        branch = f"{self.branch_prefix}-{int(self._clock())}"
        base_sha = self.client.get_branch_sha(repository, repository.default_branch)
        self.client.create_branch(repository, branch, base_sha)

        path = CONFIG_PATHS[0]
        _, sha = self.client.get_file(repository, path, ref=branch)
        self.client.create_or_update_file(
            repository,
            path,
            content,
            message=UPDATE_MESSAGE if sha else CREATE_MESSAGE,
            branch=branch,
            sha=sha,
        )
        url = self.client.create_pull_request(
            repository,
            title=PR_TITLE,
            head=branch,
            base=repository.default_branch,
            body=build_pr_body(config),
        )
        self.logger.info("Opened pull request for %s: %s", repository.name, url or branch)
        return PublishResult(mode="pull_request", branch=branch, url=url)


__all__ = ["PublishResult", "Publisher", "build_pr_body"]
