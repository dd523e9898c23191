"""Staging overlay adapter."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Self

from repostage.repository._path import prepare_path
from repostage.repository._protocol import Repository, Stage, encode_data

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from repostage.repository._path import PathLike


class Staged[R: Repository](Stage):
    """Layers pending changes over an inner repository.

    Each overlay entry maps a path to new contents, or to None for a
    removal. An entry fully masks the inner repository for its path.
    Overlays are not thread-safe.

    Example:
        >>> staged = Staged(Staging().with_file("a.txt", b"a"))
        >>> _ = staged.add_file("b.txt", "b").remove_file("a.txt")
        >>> list(staged.get_index())
        ['b.txt']
    """

    def __init__(self, inner: R) -> None:
        self._inner: R = inner
        self._overlay: dict[str, bytes | None] = {}

    def __len__(self) -> int:
        return len(self._overlay)

    @property
    def inner(self) -> R:
        return self._inner

    @property
    def pending(self) -> Mapping[str, bytes | None]:
        """Read-only view of the overlay."""
        return MappingProxyType(self._overlay)

    def with_repository[S: Repository](self, inner: S) -> Staged[S]:
        """Move the overlay onto a different inner repository.

        Args:
            inner: The new inner repository.

        Returns:
            A new adapter owning the overlay; this adapter is left empty.
        """
        staged = Staged(inner)
        staged._overlay = self._overlay  # noqa: SLF001
        self._overlay = {}
        return staged

    def get_file(self, path: PathLike) -> bytes | None:
        path = prepare_path(path)
        if path in self._overlay:
            return self._overlay[path]
        return self._inner.get_file(path)

    def get_index(self) -> Iterator[str]:
        paths = set(self._inner.get_index())
        for path, data in self._overlay.items():
            if data is None:
                paths.discard(path)
            else:
                paths.add(path)
        return iter(sorted(paths))

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        self._overlay[prepare_path(path)] = encode_data(data)
        return self

    def remove_file(self, path: PathLike) -> bytes | None:
        path = prepare_path(path)
        previous = self._overlay.get(path)
        self._overlay[path] = None
        return previous

    def drain(self) -> Iterator[tuple[str, bytes | None]]:
        """Remove and yield overlay entries in ascending path order.

        Entries are popped one at a time as they are yielded, so entries a
        consumer never reaches stay pending. Entries staged while draining
        are picked up by a further sorted pass.

        Yields:
            Pairs of path and contents, or None for removals.
        """
        while self._overlay:
            for path in sorted(self._overlay):
                if path in self._overlay:
                    yield path, self._overlay.pop(path)

    def find_conflict(self) -> str | None:
        """Find a staged write that would need to be a directory too.

        A conflict is a path written as a file while another pending entry
        lies beneath it, for example ``a`` and ``a/b``.

        Returns:
            The first conflicting file path, or None.
        """
        for path in sorted(self._overlay):
            parts = path.split("/")
            for depth in range(1, len(parts)):
                parent = "/".join(parts[:depth])
                if self._overlay.get(parent) is not None:
                    return parent
        return None
