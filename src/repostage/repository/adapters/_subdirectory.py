"""Sub-path scoping adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from repostage.repository._path import prepare_path
from repostage.repository._protocol import Commit, Repository, Stage

if TYPE_CHECKING:
    from collections.abc import Iterator

    from repostage.repository._models import CommitParams, CommitResult
    from repostage.repository._path import PathLike


class Subdirectory[R: Repository](Stage):
    """Exposes one directory of an inner repository as its own root.

    Relative paths are validated before they are joined onto the prefix, so
    a view can never reach outside its directory. Staging and committing
    are forwarded when the inner repository supports them.

    Example:
        >>> inner = Staging().with_file("pkg/a.txt", b"a")
        >>> list(Subdirectory(inner, "pkg").get_index())
        ['a.txt']
    """

    def __init__(self, inner: R, path: PathLike) -> None:
        self._inner: R = inner
        self._prefix: str = "" if path == "" else prepare_path(path)

    @classmethod
    def root(cls, inner: R) -> Self:
        """Create a view of the whole inner repository."""
        return cls._unchecked(inner, "")

    @classmethod
    def _unchecked(cls, inner: R, path: str) -> Self:
        view = cls.__new__(cls)
        view._inner = inner
        view._prefix = path
        return view

    @property
    def inner(self) -> R:
        return self._inner

    @property
    def path(self) -> str:
        """The prefix inside the inner repository; empty for the root."""
        return self._prefix

    def _join(self, path: PathLike) -> str:
        relative = prepare_path(path)
        return f"{self._prefix}/{relative}" if self._prefix else relative

    def _stage(self) -> Stage:
        if not isinstance(self._inner, Stage):
            msg = f"{type(self._inner).__name__} does not support staging"
            raise TypeError(msg)
        return self._inner

    def get_file(self, path: PathLike) -> bytes | None:
        return self._inner.get_file(self._join(path))

    def get_index(self) -> Iterator[str]:
        if not self._prefix:
            yield from self._inner.get_index()
            return

        marker = f"{self._prefix}/"
        for path in self._inner.get_index():
            if path.startswith(marker) and len(path) > len(marker):
                yield path.removeprefix(marker)

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        _ = self._stage().add_file(self._join(path), data)
        return self

    def remove_file(self, path: PathLike) -> bytes | None:
        return self._stage().remove_file(self._join(path))

    def commit(self, params: CommitParams | str | None = None) -> CommitResult:
        """Commit the inner repository.

        The whole inner overlay is committed, including changes staged
        outside this view.

        Raises:
            TypeError: If the inner repository does not support commits.
        """
        if not isinstance(self._inner, Commit):
            msg = f"{type(self._inner).__name__} does not support commits"
            raise TypeError(msg)
        return self._inner.commit(params)
