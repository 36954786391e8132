"""GitHub collaborators: REST client and configuration publisher."""

from .client import GitHubClient, GitHubError, HttpRequest, HttpResponse, Repository
from .publisher import PublishResult, Publisher, build_pr_body

__all__ = [
    "GitHubClient",
    "GitHubError",
    "HttpRequest",
    "HttpResponse",
    "PublishResult",
    "Publisher",
    "Repository",
    "build_pr_body",
]
