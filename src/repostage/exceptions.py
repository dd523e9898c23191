"""Repostage exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class RepostageError(Exception):
    """Base exception for repostage errors."""


# =============================================================================
# Path Exceptions
# =============================================================================


class RepositoryPathError(RepostageError, ValueError):
    """Base exception for invalid repository-relative paths.

    Attributes:
        path: The offending path after normalization.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The offending path after normalization.
        """
        super().__init__(message)
        self.path: str | None = path


class PathEmptyError(RepositoryPathError):
    """Raised when a path normalizes to the repository root."""


class PathEscapeError(RepositoryPathError):
    """Raised when a path normalizes to a location above the repository root."""


class PathConflictError(RepositoryPathError):
    """Raised when a staged file path is also the parent of another staged path."""


# =============================================================================
# File System Exceptions
# =============================================================================


class DirectoryError(RepostageError):
    """Raised when a file system repository root is not a directory.

    Attributes:
        path: The path that was expected to be a directory.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The path that was expected to be a directory.
        """
        super().__init__(message)
        self.path: Path | None = path


# =============================================================================
# Git Object Database Exceptions
# =============================================================================


class ObjectDatabaseError(RepostageError):
    """Base exception for local git object database errors.

    Attributes:
        path: The repository path.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and repository context.

        Args:
            message: Human-readable error message.
            path: The repository path.
            cause: The underlying exception, if any.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause


class RevisionNotFoundError(ObjectDatabaseError):
    """Raised when a revision cannot be resolved to a commit.

    Attributes:
        revision: The revision that failed to resolve.
    """

    def __init__(
        self,
        message: str,
        *,
        revision: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and revision context."""
        super().__init__(message, path=path, cause=cause)
        self.revision: str = revision


class ReferenceConflictError(ObjectDatabaseError):
    """Raised when a reference moved between reading and updating it.

    The commit object already exists in the object database when this is
    raised; only the reference update was rejected.

    Attributes:
        ref: The reference that could not be updated.
        sha: The SHA of the orphaned commit.
    """

    def __init__(
        self,
        message: str,
        *,
        ref: str,
        sha: str | None = None,
        path: Path | None = None,
    ) -> None:
        """Initialize with error message and reference context."""
        super().__init__(message, path=path)
        self.ref: str = ref
        self.sha: str | None = sha


class AuthorMissingError(ObjectDatabaseError):
    """Raised when a detached commit has no author identity."""


class CommitterMissingError(ObjectDatabaseError):
    """Raised when a detached commit has no committer identity."""


# =============================================================================
# Remote (GitHub) Exceptions
# =============================================================================


class RemoteError(RepostageError):
    """Base exception for remote repository errors."""


class TransportError(RemoteError):
    """Raised when a request fails before a response is received.

    Attributes:
        cause: The underlying transport exception.
    """

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        """Initialize with error message and cause."""
        super().__init__(message)
        self.cause: Exception | None = cause


_STATUS_MESSAGES: dict[int, str] = {
    401: "401 Unauthorized",
    403: "403 Forbidden",
    404: "404 Not Found",
    429: "429 Too Many Requests",
}


class ResponseError(RemoteError):
    """Raised when the remote responds with a non-success status.

    Attributes:
        status_code: HTTP status code.
        url: The requested URL.
    """

    def __init__(self, status_code: int, *, url: str | None = None) -> None:
        """Initialize from a status code.

        Args:
            status_code: HTTP status code.
            url: The requested URL.
        """
        super().__init__(
            _STATUS_MESSAGES.get(status_code, f"Response error: {status_code}")
        )
        self.status_code: int = status_code
        self.url: str | None = url


class ParseError(RemoteError):
    """Raised when a response body cannot be decoded or has an unexpected shape."""


class RepoSpecError(RepostageError, ValueError):
    """Raised when a GitHub repository spec is invalid.

    Attributes:
        spec: The rejected spec string.
    """

    def __init__(self, message: str, *, spec: str) -> None:
        """Initialize with error message and the rejected spec."""
        super().__init__(message)
        self.spec: str = spec


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(RepostageError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed.

    Attributes:
        path: Path to the file that failed to load.
        line: Line number of the error, if known.
        column: Column number of the error, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column
