"""Unit tests for the Revision value type."""

import pytest

from repostage.repository import Revision, RevisionKind

SHA = "0123456789abcdef0123456789abcdef01234567"


class TestRevisionDisplay:
    def test_head(self) -> None:
        assert str(Revision.head()) == "HEAD"

    def test_sha(self) -> None:
        assert str(Revision.sha(SHA)) == SHA

    def test_branch(self) -> None:
        assert str(Revision.branch("main")) == "refs/heads/main"

    def test_tag(self) -> None:
        assert str(Revision.tag("v1.0.0")) == "refs/tags/v1.0.0"


class TestRevisionParse:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("HEAD", Revision.head()),
            (SHA, Revision.sha(SHA)),
            ("refs/heads/feature/x", Revision.branch("feature/x")),
            ("refs/tags/v2", Revision.tag("v2")),
            ("main", Revision.branch("main")),
        ],
    )
    def test_parse(self, value: str, expected: Revision) -> None:
        assert Revision.parse(value) == expected

    @pytest.mark.parametrize(
        "revision",
        [
            Revision.head(),
            Revision.sha(SHA),
            Revision.branch("main"),
            Revision.tag("v1"),
        ],
    )
    def test_display_parses_back(self, revision: Revision) -> None:
        assert Revision.parse(str(revision)) == revision


class TestRevisionPinning:
    def test_only_sha_is_pinned(self) -> None:
        assert Revision.sha(SHA).is_pinned
        assert not Revision.head().is_pinned
        assert not Revision.branch("main").is_pinned
        assert not Revision.tag("v1").is_pinned

    def test_is_hashable_and_comparable(self) -> None:
        assert {Revision.branch("a"), Revision.branch("a")} == {Revision.branch("a")}
        assert Revision.branch("a") != Revision.tag("a")
        assert Revision.head().kind is RevisionKind.HEAD

    def test_is_frozen(self) -> None:
        revision = Revision.head()
        with pytest.raises(AttributeError):
            revision.value = "x"  # pyright: ignore[reportAttributeAccessIssue]
