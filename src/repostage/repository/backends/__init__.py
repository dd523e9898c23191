"""Repository backends.

Backends:
    Staging: Plain in-memory file store.
    Memory: In-memory store with staged commits.
    FileSystem: Directory on local disk.
    Git: Local git object database via dulwich.
    GitHub: Remote repository via the GitHub REST API.
"""

from repostage.repository.backends._fs import FileSystem
from repostage.repository.backends._git import Git
from repostage.repository.backends._staging import Memory, Staging
from repostage.repository.backends.github import GitHub, GitHubClient, GitHubRepoSpec

__all__ = [
    "FileSystem",
    "Git",
    "GitHub",
    "GitHubClient",
    "GitHubRepoSpec",
    "Memory",
    "Staging",
]
