from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator

import pytest

from depsync.detector import DetectedEcosystem
from depsync.github.client import GitHubClient
from tests._fixtures.github_stub import GitHubStub


@pytest.fixture
def detected() -> Callable[..., DetectedEcosystem]:
    """Build a DetectedEcosystem with sensible defaults."""

    def _build(
        ecosystem: str,
        directories: Iterable[str] = ("/",),
        confidence: float = 1.0,
        name: str | None = None,
    ) -> DetectedEcosystem:
        return DetectedEcosystem(
            name=name or ecosystem,
            ecosystem=ecosystem,
            directories=frozenset(directories),
            confidence=confidence,
        )

    return _build


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Template directory with npm (nested layout) and docker (flat layout) templates."""
    root = tmp_path / "configs"
    (root / "npm").mkdir(parents=True)
    (root / "npm" / "default.yml").write_text(
        "version: 2\n"
        "updates:\n"
        "  - package-ecosystem: npm\n"
        "    directory: /\n"
        "    schedule:\n"
        "      interval: weekly\n"
        "      day: monday\n"
        "    open-pull-requests-limit: 5\n"
        "    labels: [dependencies, javascript]\n",
        encoding="utf-8",
    )
    (root / "docker.yml").write_text(
        "version: 2\n"
        "updates:\n"
        "  - package-ecosystem: docker\n"
        "    directory: /\n"
        "    schedule:\n"
        "      interval: daily\n"
        "    labels: [docker]\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def github_stub() -> GitHubStub:
    return GitHubStub(org="acme")


@pytest.fixture
def github_client(github_stub: GitHubStub) -> GitHubClient:
    return GitHubClient("token", github_stub.org, transport=github_stub)



@pytest.fixture(autouse=True)
def _reset_depsync_logging() -> Iterator[None]:
    """Drop handlers bound to a test's captured streams."""
    yield
    logger = logging.getLogger("depsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
