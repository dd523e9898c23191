"""Repository abstraction layer.

This package provides a uniform read, stage and commit interface over local
directories, local git object databases and GitHub repositories, plus
adapters that compose over any of them.

Protocols:
    Repository: Read files and list the index.
    Stage: Stage file writes and removals.
    Commit: Persist staged changes.

Adapters:
    Cached: Memoizes reads for pinned revisions.
    Staged: Overlays pending changes over an inner repository.
    Subdirectory: Scopes a repository to one directory.

Example:
    >>> from repostage.repository import Git, Revision, Subdirectory
    >>> with Git.open(".") as repo:
    ...     docs = Subdirectory(repo, "docs")
    ...     _ = docs.add_file("index.md", "# Docs\\n")
    ...     result = docs.commit("Add docs index")
"""

from repostage.repository._models import CommitParams, CommitResult, Signature
from repostage.repository._path import PathLike, prepare_path
from repostage.repository._protocol import Commit, Repository, Stage
from repostage.repository._revision import Revision, RevisionKind
from repostage.repository.adapters import Cached, Staged, Subdirectory
from repostage.repository.backends import (
    FileSystem,
    Git,
    GitHub,
    GitHubClient,
    GitHubRepoSpec,
    Memory,
    Staging,
)

__all__ = [
    "Cached",
    "Commit",
    "CommitParams",
    "CommitResult",
    "FileSystem",
    "Git",
    "GitHub",
    "GitHubClient",
    "GitHubRepoSpec",
    "Memory",
    "PathLike",
    "Repository",
    "Revision",
    "RevisionKind",
    "Signature",
    "Stage",
    "Staged",
    "Staging",
    "Subdirectory",
    "prepare_path",
]
