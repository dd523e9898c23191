"""Read-through cache adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from repostage.repository._once import OnceCell, OnceMap
from repostage.repository._path import prepare_path
from repostage.repository._protocol import Repository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from repostage.repository._path import PathLike


class Cached[R: Repository]:
    """Memoizes reads from an inner repository.

    Caching is only sound while the inner repository reads a fixed snapshot.
    Owners that track mutable revisions disable the cache, and clear it when
    the snapshot changes.

    Attributes:
        inner: The wrapped repository.
        enabled: Whether reads are served from the cache.

    Example:
        >>> cached = Cached(Staging().with_file("a.txt", b"a"))
        >>> cached.get_file("a.txt")
        b'a'
    """

    def __init__(self, inner: R, *, enabled: bool = True) -> None:
        self._inner: R = inner
        self._enabled: bool = enabled
        self._index: OnceCell[tuple[str, ...]] = OnceCell()
        self._files: OnceMap[str, bytes | None] = OnceMap()

    @property
    def inner(self) -> R:
        return self._inner

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self, enabled: bool = True) -> None:  # noqa: FBT001, FBT002
        """Turn caching on or off without discarding cached values."""
        self._enabled = enabled

    def clear(self) -> None:
        """Discard every cached value."""
        self._index.clear()
        self._files.clear()

    def get_file(self, path: PathLike) -> bytes | None:
        if not self._enabled:
            return self._inner.get_file(path)

        key = prepare_path(path)
        return self._files.get_or_init(key, lambda: self._inner.get_file(key))

    def get_index(self) -> Iterator[str]:
        if not self._enabled:
            return self._inner.get_index()

        index = self._index.get_or_init(lambda: tuple(self._inner.get_index()))
        return iter(index)
