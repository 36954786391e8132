"""Thin GitHub REST client covering the calls a sync run needs."""

from __future__ import annotations

import base64
import json
from http.client import HTTPException
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from ..config import DEFAULT_API_URL
from ..logging import get_logger
from ..models import DependabotConfig
from ..serialization import parse_config

CONFIG_PATHS = (".github/dependabot.yml", ".github/dependabot.yaml")
_PER_PAGE = 100


class GitHubError(RuntimeError):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes] = None
    timeout: float = 30.0


@dataclass
class HttpResponse:
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))


Transport = Callable[[HttpRequest], HttpResponse]


@dataclass
class Repository:
    """Subset of repository metadata used during a sync."""

    name: str
    default_branch: str = "main"
    archived: bool = False
    topics: List[str] = field(default_factory=list)
    html_url: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Repository":
        topics = payload.get("topics")
        return cls(
            name=str(payload.get("name", "")),
            default_branch=str(payload.get("default_branch") or "main"),
            archived=bool(payload.get("archived", False)),
            topics=[str(topic) for topic in topics] if isinstance(topics, list) else [],
            html_url=str(payload.get("html_url") or ""),
        )


def urllib_transport(request: HttpRequest) -> HttpResponse:
    """Send ``request`` with urllib; HTTP error statuses are returned, not raised."""
    http_request = Request(
        request.url, data=request.body, headers=request.headers, method=request.method
    )
    try:
        with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
            return HttpResponse(
                status=response.status,
                body=response.read(),
                headers=dict(response.headers.items()),
            )
    except HTTPError as exc:
        body = exc.read() if hasattr(exc, "read") else b""
        headers = dict(exc.headers.items()) if exc.headers else {}
        return HttpResponse(status=exc.code, body=body or b"", headers=headers)
    except URLError as exc:
        raise GitHubError(f"GitHub request to {request.url} failed: {exc.reason}") from exc
    except (OSError, HTTPException) as exc:
        # Timeouts and dropped connections while reading the body.
        raise GitHubError(f"GitHub request to {request.url} failed: {exc!r}") from exc


class GitHubClient:
    """Performs organization-scoped GitHub API calls."""

    def __init__(
        self,
        token: str,
        org: str,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: Transport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.org = org
        self.api_url = api_url.rstrip("/")
        self._token = token
        self._transport = transport or urllib_transport
        self._timeout = timeout
        self.logger = get_logger("github")

    # ------------------------------------------------------------------
    # Repositories

    def list_repositories(self, *, exclude_archived: bool = True) -> List[Repository]:
        """Return every organization repository, following pagination."""
        repositories: List[Repository] = []
        page = 1
        while True:
            payload = self._request(
                "GET",
                f"/orgs/{quote(self.org)}/repos",
                params={"type": "all", "per_page": _PER_PAGE, "page": page},
            )
            if not isinstance(payload, list):
                raise GitHubError("Unexpected repository listing payload")
            for item in payload:
                repository = Repository.from_payload(item)
                if exclude_archived and repository.archived:
                    continue
                repositories.append(repository)
            if len(payload) < _PER_PAGE:
                break
            page += 1
        return repositories

    def get_repository(self, name: str) -> Repository:
        payload = self._request("GET", self._repo_path(name))
        return Repository.from_payload(payload)

    def list_tree_paths(self, repository: Repository) -> List[str]:
        """Return blob paths of the default branch tree, recursively."""
        payload = self._request(
            "GET",
            f"{self._repo_path(repository.name)}/git/trees/{quote(repository.default_branch, safe='')}",
            params={"recursive": 1},
        )
        if payload.get("truncated"):
            self.logger.warning("Tree listing for %s was truncated by GitHub", repository.name)
        entries = payload.get("tree") or []
        return [
            str(entry["path"])
            for entry in entries
            if isinstance(entry, dict) and entry.get("type") == "blob" and entry.get("path")
        ]

    # ------------------------------------------------------------------
    # Contents

    def get_file(
        self, repository: Repository, path: str, *, ref: str | None = None
    ) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(text, sha)`` for ``path``, or ``(None, None)`` if it does not exist."""
        params = {"ref": ref} if ref else None
        try:
            payload = self._request(
                "GET", f"{self._repo_path(repository.name)}/contents/{path}", params=params
            )
        except GitHubError as exc:
            if exc.status == 404:
                return None, None
            raise
        content = payload.get("content") if isinstance(payload, dict) else None
        if content is None:
            raise GitHubError(f"{path} in {repository.name} has no content")
        try:
            text = base64.b64decode(content).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise GitHubError(f"Failed to decode {path} in {repository.name}") from exc
        return text, payload.get("sha")

    def get_existing_config(self, repository: Repository) -> Optional[DependabotConfig]:
        """Return the parsed Dependabot config, or None when the repository has none.

        Raises ConfigParseFailed when a file exists but is not valid YAML.
        """
        for path in CONFIG_PATHS:
            text, _ = self.get_file(repository, path)
            if text is not None:
                return parse_config(text)
        return None

    def create_or_update_file(
        self,
        repository: Repository,
        path: str,
        content: str,
        *,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> None:
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        self._request("PUT", f"{self._repo_path(repository.name)}/contents/{path}", body=body)

    # ------------------------------------------------------------------
    # Branches and pull requests

    def get_branch_sha(self, repository: Repository, branch: str) -> str:
        payload = self._request(
            "GET", f"{self._repo_path(repository.name)}/git/ref/heads/{quote(branch)}"
        )
        sha = (payload.get("object") or {}).get("sha") if isinstance(payload, dict) else None
        if not sha:
            raise GitHubError(f"Ref for branch {branch} in {repository.name} has no SHA")
        return str(sha)

    def create_branch(self, repository: Repository, branch: str, sha: str) -> None:
        self._request(
            "POST",
            f"{self._repo_path(repository.name)}/git/refs",
            body={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    def create_pull_request(
        self, repository: Repository, *, title: str, head: str, base: str, body: str
    ) -> str:
        """Open a pull request and return its URL."""
        payload = self._request(
            "POST",
            f"{self._repo_path(repository.name)}/pulls",
            body={
                "title": title,
                "head": head,
                "base": base,
                "body": body,
                "maintainer_can_modify": True,
            },
        )
        return str(payload.get("html_url", "")) if isinstance(payload, dict) else ""

    # ------------------------------------------------------------------
    # Internal helpers

    def _repo_path(self, name: str) -> str:
        return f"/repos/{quote(self.org)}/{quote(name)}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        body: Dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.api_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "depsync",
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        self.logger.debug("%s %s", method, url)
        response = self._transport(
            HttpRequest(method=method, url=url, headers=headers, body=data, timeout=self._timeout)
        )
        if response.status >= 400:
            detail = response.body.decode("utf-8", errors="ignore").strip()
            raise GitHubError(
                f"GitHub {method} {path} failed with status {response.status}: {detail}",
                status=response.status,
            )
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise GitHubError(f"GitHub {method} {path} returned invalid JSON") from exc


__all__ = [
    "CONFIG_PATHS",
    "GitHubClient",
    "GitHubError",
    "HttpRequest",
    "HttpResponse",
    "Repository",
    "Transport",
    "urllib_transport",
]
