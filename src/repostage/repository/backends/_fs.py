"""Local file system backend."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Self

from repostage.exceptions import DirectoryError
from repostage.repository._models import CommitParams, CommitResult
from repostage.repository._path import prepare_path
from repostage.repository._protocol import Stage
from repostage.repository.adapters import Staged
from repostage.utils import create_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from os import PathLike as OsPathLike

    from structlog.typing import FilteringBoundLogger

    from repostage.config import GitConfig
    from repostage.repository._path import PathLike

DEFAULT_EXCLUDE: tuple[str, ...] = (".git",)
DEFAULT_EXCLUDE_ROOT: tuple[str, ...] = ("target",)


class _Disk:
    """Reads files directly from a directory tree."""

    def __init__(
        self,
        root: Path,
        *,
        exclude: Iterable[str],
        exclude_root: Iterable[str],
    ) -> None:
        self.root: Path = root
        self.exclude: frozenset[str] = frozenset(exclude)
        self.exclude_root: frozenset[str] = frozenset(exclude_root)

    def get_file(self, path: PathLike) -> bytes | None:
        target = self.root / prepare_path(path)
        try:
            return target.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    def get_index(self) -> Iterator[str]:
        paths: list[str] = []
        for directory, dirnames, filenames in self.root.walk():
            excluded = self.exclude
            if directory == self.root:
                excluded |= self.exclude_root
            dirnames[:] = [name for name in dirnames if name not in excluded]
            paths.extend(
                (directory / name).relative_to(self.root).as_posix()
                for name in filenames
                if name not in excluded
            )
        return iter(sorted(paths))


class FileSystem(Stage):
    """A repository backed by a directory on disk.

    Reads go through the staged overlay first and then to disk. Commits
    apply each change directly to the working tree, so a failed commit may
    leave earlier changes applied.

    Example:
        >>> repo = FileSystem.open("path/to/project")
        >>> _ = repo.add_file("docs/notes.md", "# Notes\\n")
        >>> repo.commit().paths
        ('docs/notes.md',)
    """

    def __init__(
        self,
        root: Path,
        *,
        exclude: Iterable[str] = DEFAULT_EXCLUDE,
        exclude_root: Iterable[str] = DEFAULT_EXCLUDE_ROOT,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._staged: Staged[_Disk] = Staged(
            _Disk(root, exclude=exclude, exclude_root=exclude_root)
        )
        self._logger: FilteringBoundLogger = logger or create_logger(
            "repostage.fs"
        )

    @classmethod
    def open(
        cls,
        path: str | OsPathLike[str],
        *,
        config: GitConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Open a directory as a repository.

        Args:
            path: Directory to open; it is canonicalized.
            config: Optional settings supplying index exclusions.
            logger: Optional logger.

        Returns:
            The repository.

        Raises:
            DirectoryError: If the path is not an existing directory.
        """
        root = Path(path)
        if not root.is_dir():
            msg = f"Not a directory: {root}"
            raise DirectoryError(msg, path=root)

        if config is None:
            return cls(root.resolve(strict=True), logger=logger)
        return cls(
            root.resolve(strict=True),
            exclude=config.exclude,
            exclude_root=config.exclude_root,
            logger=logger,
        )

    @classmethod
    def current_dir(cls) -> Self:
        """Open the current working directory."""
        return cls.open(Path.cwd())

    @property
    def root(self) -> Path:
        return self._staged.inner.root

    @property
    def staged(self) -> Staged[_Disk]:
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
        """Write every staged change to disk.

        Writes create missing parent directories. Removals ignore files
        that are already gone and then prune parent directories left empty,
        stopping at the repository root.

        Args:
            params: Commit parameters; the message is only logged.

        Returns:
            The commit result. File system commits have no SHA.

        Raises:
            OSError: If a write or removal fails. Changes not yet applied
                stay staged.
        """
        if not self._staged.pending:
            return CommitResult.empty()

        params = CommitParams.coerce(params)
        paths: list[str] = []
        for path, data in self._staged.drain():
            target = self.root / path
            if data is None:
                target.unlink(missing_ok=True)
                self._prune(target.parent)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                _ = target.write_bytes(data)
            paths.append(path)
            self._logger.debug("commit_path", path=path, removed=data is None)

        self._logger.info("commit", message=params.message, paths=len(paths))
        return CommitResult(sha=None, paths=tuple(paths), no_changes=False)

    def _prune(self, directory: Path) -> None:
        while directory != self.root and directory.is_relative_to(self.root):
            if not directory.is_dir() or any(directory.iterdir()):
                return
            directory.rmdir()
            directory = directory.parent
