"""Repository protocols.

This module defines the three runtime-checkable contracts shared by every
backend and adapter: reading (``Repository``), staging (``Stage``) and
persisting (``Commit``). Adapters compose by wrapping any object that
satisfies ``Repository`` and forwarding the other contracts when the inner
object supports them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from repostage.repository._models import CommitParams, CommitResult
    from repostage.repository._path import PathLike


@runtime_checkable
class Repository(Protocol):
    """Read access to a tree of files.

    Example:
        >>> def read_readme(repo: Repository) -> bytes | None:
        ...     return repo.get_file("README.md")
    """

    def get_file(self, path: PathLike) -> bytes | None:
        """Read a file.

        Args:
            path: Repository-relative path.

        Returns:
            The file contents, or None if the file does not exist.

        Raises:
            RepositoryPathError: If the path is empty or escapes the root.
        """
        ...

    def get_index(self) -> Iterator[str]:
        """Iterate the paths of every file, in sorted order."""
        ...


@runtime_checkable
class Stage(Repository, Protocol):
    """A repository with write access to a set of pending changes."""

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        """Stage a file write.

        Args:
            path: Repository-relative path.
            data: File contents; strings are encoded as UTF-8.

        Returns:
            The stage, for chaining.
        """
        ...

    def remove_file(self, path: PathLike) -> bytes | None:
        """Stage a file removal.

        Args:
            path: Repository-relative path.

        Returns:
            The content previously staged for the path, if any.
        """
        ...

    def add_files(self, files: Iterable[tuple[PathLike, bytes | str]]) -> Self:
        """Stage several file writes in order.

        Args:
            files: Pairs of path and contents.

        Returns:
            The stage, for chaining.
        """
        for path, data in files:
            _ = self.add_file(path, data)
        return self


@runtime_checkable
class Commit(Stage, Protocol):
    """A stage whose pending changes can be persisted."""

    def commit(self, params: CommitParams | str | None = None) -> CommitResult:
        """Apply every pending change and clear the pending set.

        Args:
            params: Commit parameters, a bare message, or None.

        Returns:
            The commit result.
        """
        ...


def encode_data(data: bytes | str) -> bytes:
    """Encode staged file contents."""
    return data.encode() if isinstance(data, str) else bytes(data)
