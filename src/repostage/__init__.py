"""Read, stage and atomically persist changes to a tree of files."""

from repostage.repository import (
    Cached,
    Commit,
    CommitParams,
    CommitResult,
    FileSystem,
    Git,
    GitHub,
    GitHubRepoSpec,
    Memory,
    Repository,
    Revision,
    Signature,
    Stage,
    Staged,
    Staging,
    Subdirectory,
    prepare_path,
)

__all__ = [
    "Cached",
    "Commit",
    "CommitParams",
    "CommitResult",
    "FileSystem",
    "Git",
    "GitHub",
    "GitHubRepoSpec",
    "Memory",
    "Repository",
    "Revision",
    "Signature",
    "Stage",
    "Staged",
    "Staging",
    "Subdirectory",
    "prepare_path",
]
