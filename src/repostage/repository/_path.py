"""Repository-relative path validation."""

import posixpath
from pathlib import PurePath

from repostage.exceptions import PathEmptyError, PathEscapeError

type PathLike = str | PurePath


def prepare_path(path: PathLike) -> str:
    """Normalize a path so that it is relative to the repository root.

    Leading separators are stripped so absolute paths are treated as rooted
    at the repository, then ``.`` and ``..`` segments are resolved lexically.
    The result always uses ``/`` separators.

    Args:
        path: A string or pure path to normalize.

    Returns:
        The normalized relative path.

    Raises:
        PathEmptyError: If the path normalizes to the repository root.
        PathEscapeError: If the path normalizes above the repository root.

    Example:
        >>> prepare_path("./foo/../bar")
        'bar'
        >>> prepare_path("/foo")
        'foo'
    """
    raw = path.as_posix() if isinstance(path, PurePath) else path
    normalized = posixpath.normpath(raw.lstrip("/"))

    if normalized in {"", "."}:
        msg = "Path is empty"
        raise PathEmptyError(msg, path=raw)

    if normalized == ".." or normalized.startswith("../"):
        msg = f"Path escapes the repository root: {normalized}"
        raise PathEscapeError(msg, path=normalized)

    return normalized
