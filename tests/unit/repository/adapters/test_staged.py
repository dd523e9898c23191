"""Unit tests for the Staged adapter."""

import pytest

from repostage.exceptions import PathEmptyError, PathEscapeError
from repostage.repository import Repository, Stage, Staged, Staging


@pytest.fixture
def staged() -> Staged[Staging]:
    inner = Staging().with_file("a.txt", b"a").with_file("dir/b.txt", b"b")
    return Staged(inner)


class TestStagedReads:
    def test_reads_fall_through_to_inner(self, staged: Staged[Staging]) -> None:
        assert staged.get_file("a.txt") == b"a"
        assert staged.get_file("missing") is None

    def test_overlay_masks_inner(self, staged: Staged[Staging]) -> None:
        staged.add_file("a.txt", b"new")

        assert staged.get_file("a.txt") == b"new"
        assert staged.inner.get_file("a.txt") == b"a"

    def test_tombstone_masks_inner(self, staged: Staged[Staging]) -> None:
        staged.remove_file("a.txt")

        assert staged.get_file("a.txt") is None

    def test_index_merges_overlay(self, staged: Staged[Staging]) -> None:
        staged.add_file("c.txt", b"c").add_file("a.txt", b"changed")
        staged.remove_file("dir/b.txt")
        staged.remove_file("never-existed")

        assert list(staged.get_index()) == ["a.txt", "c.txt"]

    def test_paths_are_normalized(self, staged: Staged[Staging]) -> None:
        staged.add_file("./x/../c.txt", "c")

        assert staged.get_file("/c.txt") == b"c"
        assert dict(staged.pending) == {"c.txt": b"c"}

    @pytest.mark.parametrize(
        ("path", "error"),
        [("", PathEmptyError), ("../x", PathEscapeError)],
    )
    def test_rejects_invalid_paths(
        self, staged: Staged[Staging], path: str, error: type[Exception]
    ) -> None:
        with pytest.raises(error):
            staged.get_file(path)
        with pytest.raises(error):
            staged.add_file(path, b"")
        with pytest.raises(error):
            staged.remove_file(path)


class TestStagedWrites:
    def test_strings_are_utf8_encoded(self, staged: Staged[Staging]) -> None:
        staged.add_file("u.txt", "héllo")

        assert staged.get_file("u.txt") == "héllo".encode()

    def test_remove_returns_previously_staged_content(
        self, staged: Staged[Staging]
    ) -> None:
        staged.add_file("a.txt", b"staged")

        assert staged.remove_file("a.txt") == b"staged"
        assert staged.remove_file("a.txt") is None

    def test_remove_of_unstaged_file_returns_none(
        self, staged: Staged[Staging]
    ) -> None:
        assert staged.remove_file("a.txt") is None

    def test_add_files(self, staged: Staged[Staging]) -> None:
        staged.add_files([("x", b"1"), ("y", "2")])

        assert len(staged) == 2
        assert staged.get_file("y") == b"2"


class TestStagedDrain:
    def test_drains_in_path_order(self, staged: Staged[Staging]) -> None:
        staged.add_file("z", b"z").remove_file("a.txt")
        staged.add_file("m/n", b"n")

        assert list(staged.drain()) == [
            ("a.txt", None),
            ("m/n", b"n"),
            ("z", b"z"),
        ]
        assert not staged.pending

    def test_partial_drain_keeps_remaining_entries(
        self, staged: Staged[Staging]
    ) -> None:
        staged.add_file("1", b"1").add_file("2", b"2").add_file("3", b"3")

        drain = staged.drain()
        assert next(drain) == ("1", b"1")
        del drain

        assert sorted(staged.pending) == ["2", "3"]

    def test_large_overlay_drains_in_order(self) -> None:
        staged = Staged(Staging())
        paths = [f"dir{i % 97}/file{i:05d}" for i in range(20_000)]
        for path in reversed(paths):
            staged.add_file(path, path)

        drain = staged.drain()
        head = [next(drain)[0] for _ in range(1_000)]
        del drain

        assert head == sorted(paths)[:1_000]
        assert len(staged) == 19_000
        assert [path for path, _ in staged.drain()] == sorted(paths)[1_000:]

    def test_entries_staged_while_draining_are_drained(self) -> None:
        staged = Staged(Staging())
        staged.add_file("b", b"b")

        drained: list[str] = []
        for path, _ in staged.drain():
            drained.append(path)
            if path == "b":
                staged.add_file("a", b"a")

        assert drained == ["b", "a"]
        assert not staged.pending

    def test_with_repository_moves_overlay(self, staged: Staged[Staging]) -> None:
        staged.add_file("new.txt", b"n")
        other = Staging().with_file("other.txt", b"o")

        moved = staged.with_repository(other)

        assert not staged.pending
        assert list(moved.get_index()) == ["new.txt", "other.txt"]


class TestStagedConflicts:
    def test_no_conflict(self, staged: Staged[Staging]) -> None:
        staged.add_file("a", b"a").add_file("a-b/c", b"c").add_file("b/c", b"c")

        assert staged.find_conflict() is None

    @pytest.mark.parametrize(
        "nested", [("a/b", b"b"), ("a/b/c", b"c"), ("a/b", None)]
    )
    def test_file_with_pending_child(
        self, staged: Staged[Staging], nested: tuple[str, bytes | None]
    ) -> None:
        staged.add_file("a", b"a")
        path, data = nested
        if data is None:
            staged.remove_file(path)
        else:
            staged.add_file(path, data)

        assert staged.find_conflict() == "a"

    def test_removed_parent_is_not_a_conflict(
        self, staged: Staged[Staging]
    ) -> None:
        staged.remove_file("a")
        staged.add_file("a/b", b"b")

        assert staged.find_conflict() is None


class TestStagedProtocols:
    def test_satisfies_protocols(self, staged: Staged[Staging]) -> None:
        assert isinstance(staged, Repository)
        assert isinstance(staged, Stage)
