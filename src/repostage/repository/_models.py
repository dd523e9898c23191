"""Repository models.

This module defines the value types passed into and returned from commits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Self

_SIGNATURE_PATTERN = re.compile(r"^\s*(?P<name>[^<]*?)\s*<(?P<email>[^>]*)>\s*$")


@dataclass(frozen=True, slots=True)
class Signature:
    """Commit identity.

    Attributes:
        name: Display name.
        email: Email address.
    """

    name: str
    email: str

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse a ``Name <email>`` string.

        Args:
            value: The identity string.

        Returns:
            The parsed signature.

        Raises:
            ValueError: If the string is not in ``Name <email>`` form.
        """
        match = _SIGNATURE_PATTERN.match(value)
        if match is None:
            msg = f"Invalid signature: {value!r}"
            raise ValueError(msg)
        return cls(name=match["name"], email=match["email"])

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True, slots=True)
class CommitParams:
    """Parameters for a commit.

    Attributes:
        message: Commit message.
        author: Author identity, resolved by the backend when None.
        committer: Committer identity, resolved by the backend when None.
    """

    message: str = ""
    author: Signature | None = None
    committer: Signature | None = None

    @classmethod
    def coerce(cls, params: CommitParams | str | None) -> CommitParams:
        """Normalize the accepted commit argument forms.

        Args:
            params: Parameters, a bare message, or None for an empty message.

        Returns:
            A CommitParams instance.
        """
        if params is None:
            return cls()
        if isinstance(params, str):
            return cls(message=params)
        return params


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of a commit operation.

    Attributes:
        sha: Commit SHA hex string, None when the backend has no commit ids
            or nothing was committed.
        paths: Paths applied by the commit, in the order they were drained.
        no_changes: True if nothing was pending.
    """

    sha: str | None
    paths: tuple[str, ...]
    no_changes: bool

    @classmethod
    def empty(cls) -> Self:
        """Create the result for a commit with nothing pending."""
        return cls(sha=None, paths=(), no_changes=True)
