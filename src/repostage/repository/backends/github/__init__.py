"""GitHub REST API backend."""

from repostage.repository.backends.github._client import GitHubClient
from repostage.repository.backends.github._github import GitHub
from repostage.repository.backends.github._spec import GitHubRepoSpec

__all__ = [
    "GitHub",
    "GitHubClient",
    "GitHubRepoSpec",
]
