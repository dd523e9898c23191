"""In-memory repository backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from repostage.repository._models import CommitParams, CommitResult
from repostage.repository._path import prepare_path
from repostage.repository._protocol import Stage, encode_data
from repostage.repository.adapters import Staged
from repostage.utils import create_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from structlog.typing import FilteringBoundLogger

    from repostage.repository._path import PathLike


class Staging(Stage):
    """A plain in-memory file store.

    Writes and removals apply immediately. Useful as the inner repository of
    adapters and as a test double for any backend.

    Example:
        >>> store = Staging().with_file("a.txt", "a")
        >>> store.get_file("a.txt")
        b'a'
    """

    def __init__(self, files: Mapping[str, bytes | str] | None = None) -> None:
        self._files: dict[str, bytes] = {}
        for path, data in (files or {}).items():
            _ = self.add_file(path, data)

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._files

    def with_file(self, path: PathLike, data: bytes | str) -> Self:
        """Builder-style alias of ``add_file``."""
        return self.add_file(path, data)

    def get_file(self, path: PathLike) -> bytes | None:
        return self._files.get(prepare_path(path))

    def get_index(self) -> Iterator[str]:
        return iter(sorted(self._files))

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        self._files[prepare_path(path)] = encode_data(data)
        return self

    def remove_file(self, path: PathLike) -> bytes | None:
        return self._files.pop(prepare_path(path), None)


class Memory(Stage):
    """An in-memory backend with staged changes and commits.

    Changes are held in an overlay until ``commit`` applies them to the
    underlying ``Staging`` store.

    Example:
        >>> memory = Memory()
        >>> _ = memory.add_file("a.txt", "a")
        >>> memory.store.get_file("a.txt") is None
        True
        >>> memory.commit("add a").paths
        ('a.txt',)
    """

    def __init__(
        self,
        store: Staging | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._staged: Staged[Staging] = Staged(store if store is not None else Staging())
        self._logger: FilteringBoundLogger = logger or create_logger(
            "repostage.memory"
        )

    @property
    def store(self) -> Staging:
        """The committed state."""
        return self._staged.inner

    @property
    def staged(self) -> Staged[Staging]:
        return self._staged

    def get_file(self, path: PathLike) -> bytes | None:
        return self._staged.get_file(path)

    def get_index(self) -> Iterator[str]:
        return self._staged.get_index()

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        _ = self._staged.add_file(path, data)
        return self

    def remove_file(self, path: PathLike) -> bytes | None:
        return self._staged.remove_file(path)

    def commit(self, params: CommitParams | str | None = None) -> CommitResult:
        """Apply every staged change to the store.

        Args:
            params: Commit parameters; the message is only logged.

        Returns:
            The commit result. In-memory commits have no SHA.
        """
        if not self._staged.pending:
            return CommitResult.empty()

        params = CommitParams.coerce(params)
        store = self._staged.inner
        paths: list[str] = []
        for path, data in self._staged.drain():
            if data is None:
                _ = store.remove_file(path)
            else:
                _ = store.add_file(path, data)
            paths.append(path)

        self._logger.info("commit", message=params.message, paths=len(paths))
        return CommitResult(sha=None, paths=tuple(paths), no_changes=False)
