"""Unit tests for the in-memory backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from repostage.repository import (
    Commit,
    CommitParams,
    Memory,
    Repository,
    Stage,
    Staging,
)

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


class TestStaging:
    def test_applies_writes_immediately(self) -> None:
        store = Staging()

        store.add_file("b", b"2").add_file("a", "1")

        assert store.get_file("a") == b"1"
        assert list(store.get_index()) == ["a", "b"]

    def test_initial_files(self) -> None:
        store = Staging({"./x/y": "xy"})

        assert "x/y" in store
        assert len(store) == 1

    def test_index_is_sorted_with_nested_paths(self, staging: Staging) -> None:
        assert list(staging.get_index()) == ["README.md", "pkg/a.txt", "pkg/sub/b.txt"]

    def test_directories_are_not_files(self, staging: Staging) -> None:
        assert staging.get_file("pkg") is None
        assert staging.get_file("pkg/sub/b.txt") == b"b"

    def test_remove_returns_previous_content(self) -> None:
        store = Staging().with_file("a", b"1")

        assert store.remove_file("a") == b"1"
        assert store.remove_file("a") is None
        assert store.get_file("a") is None

    def test_satisfies_protocols(self) -> None:
        store = Staging()

        assert isinstance(store, Repository)
        assert isinstance(store, Stage)
        assert not isinstance(store, Commit)


class TestMemory:
    def test_changes_are_invisible_to_store_until_commit(self) -> None:
        memory = Memory(Staging().with_file("keep", b"k").with_file("drop", b"d"))

        memory.add_file("new", b"n")
        memory.remove_file("drop")

        assert memory.store.get_file("new") is None
        assert list(memory.get_index()) == ["keep", "new"]

        result = memory.commit(CommitParams(message="update"))

        assert result.paths == ("drop", "new")
        assert not result.no_changes
        assert result.sha is None
        assert list(memory.store.get_index()) == ["keep", "new"]
        assert not memory.staged.pending

    def test_empty_commit_is_noop(self) -> None:
        memory = Memory()

        result = memory.commit()

        assert result.no_changes
        assert result.paths == ()

    def test_commit_logs(self, mocker: MockerFixture) -> None:
        logger = mocker.MagicMock()
        memory = Memory(logger=logger)

        memory.add_file("a", b"a").commit("message")

        logger.info.assert_called_once_with("commit", message="message", paths=1)

    def test_satisfies_protocols(self) -> None:
        memory = Memory()

        assert isinstance(memory, Repository)
        assert isinstance(memory, Stage)
        assert isinstance(memory, Commit)

    @pytest.mark.parametrize("params", [None, "message", CommitParams("m")])
    def test_accepts_commit_param_forms(self, params: CommitParams | str | None) -> None:
        memory = Memory().add_file("a", b"a")

        assert memory.commit(params).paths == ("a",)
