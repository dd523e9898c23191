"""Revision value type."""

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Self

_SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")


class RevisionKind(StrEnum):
    """Kinds of revision a backend can track."""

    HEAD = "head"
    SHA = "sha"
    BRANCH = "branch"
    TAG = "tag"


@dataclass(frozen=True, slots=True)
class Revision:
    """A point in repository history that reads and commits resolve against.

    Only ``SHA`` revisions are immutable, so only they may be cached.

    Attributes:
        kind: The revision kind.
        value: The SHA or reference name; empty for ``HEAD``.

    Example:
        >>> str(Revision.branch("main"))
        'refs/heads/main'
        >>> Revision.head().is_pinned
        False
    """

    kind: RevisionKind
    value: str = ""

    @classmethod
    def head(cls) -> Self:
        """Create a revision tracking the current HEAD."""
        return cls(RevisionKind.HEAD)

    @classmethod
    def sha(cls, sha: str) -> Self:
        """Create a revision pinned to a commit SHA."""
        return cls(RevisionKind.SHA, sha)

    @classmethod
    def branch(cls, name: str) -> Self:
        """Create a revision tracking a branch."""
        return cls(RevisionKind.BRANCH, name)

    @classmethod
    def tag(cls, name: str) -> Self:
        """Create a revision tracking a tag."""
        return cls(RevisionKind.TAG, name)

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse a revision from its display form.

        ``HEAD``, ``refs/heads/<name>`` and ``refs/tags/<name>`` map to their
        kinds, 40-character hex strings are SHAs and any other value is
        treated as a branch name.

        Args:
            value: The revision string.

        Returns:
            The parsed revision.
        """
        if value == "HEAD":
            return cls.head()
        if value.startswith("refs/heads/"):
            return cls.branch(value.removeprefix("refs/heads/"))
        if value.startswith("refs/tags/"):
            return cls.tag(value.removeprefix("refs/tags/"))
        if _SHA_PATTERN.match(value):
            return cls.sha(value)
        return cls.branch(value)

    @property
    def is_pinned(self) -> bool:
        """Whether the revision refers to an immutable snapshot."""
        return self.kind is RevisionKind.SHA

    def __str__(self) -> str:
        match self.kind:
            case RevisionKind.HEAD:
                return "HEAD"
            case RevisionKind.SHA:
                return self.value
            case RevisionKind.BRANCH:
                return f"refs/heads/{self.value}"
            case RevisionKind.TAG:
                return f"refs/tags/{self.value}"
