"""Once-initialized cells.

A cell is filled by the first fetch that completes. Fetches run without the
lock held, so concurrent first readers may each fetch, but every reader
observes the value that was stored first. A fetch that raises leaves the
cell empty.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable


class OnceCell[T]:
    """A single lazily initialized value."""

    __slots__ = ("_is_set", "_lock", "_value")

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._is_set: bool = False
        self._value: T | None = None

    @property
    def is_set(self) -> bool:
        """Whether a value has been stored."""
        return self._is_set

    def get_or_init(self, fetch: Callable[[], T]) -> T:
        """Return the stored value, fetching and storing it if needed.

        Args:
            fetch: Produces the value on a miss.

        Returns:
            The first value stored in the cell.
        """
        if self._is_set:
            return cast("T", self._value)

        value = fetch()
        with self._lock:
            if not self._is_set:
                self._value = value
                self._is_set = True
            return cast("T", self._value)

    def clear(self) -> None:
        """Forget the stored value."""
        with self._lock:
            self._is_set = False
            self._value = None


class OnceMap[K: Hashable, V]:
    """A map of lazily initialized values with per-key first-write-wins."""

    __slots__ = ("_lock", "_values")

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._values: dict[K, V] = {}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get_or_init(self, key: K, fetch: Callable[[], V]) -> V:
        """Return the value stored for ``key``, fetching it on a miss.

        Args:
            key: The cache key.
            fetch: Produces the value on a miss.

        Returns:
            The first value stored for the key.
        """
        with self._lock:
            if key in self._values:
                return self._values[key]

        value = fetch()
        with self._lock:
            return self._values.setdefault(key, value)

    def clear(self) -> None:
        """Forget every stored value."""
        with self._lock:
            self._values.clear()
