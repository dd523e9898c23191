"""Property-based tests for repository path validation."""

from hypothesis import given, strategies as st

from repostage.exceptions import RepositoryPathError
from repostage.repository import prepare_path

_SAFE_FILENAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-_."

component = st.one_of(
    st.sampled_from([".", ".."]),
    st.text(alphabet=_SAFE_FILENAME_ALPHABET, min_size=1, max_size=10),
)

raw_path = st.tuples(
    st.sampled_from(["", "/", "./", "//"]),
    st.lists(component, min_size=0, max_size=6),
).map(lambda parts: parts[0] + "/".join(parts[1]))

plain_component = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=10
)


@given(raw_path)
def test_result_has_no_dot_components(path: str) -> None:
    try:
        prepared = prepare_path(path)
    except RepositoryPathError:
        return

    parts = prepared.split("/")
    assert "" not in parts
    assert "." not in parts
    assert ".." not in parts
    assert not prepared.startswith("/")


@given(raw_path)
def test_is_idempotent(path: str) -> None:
    try:
        prepared = prepare_path(path)
    except RepositoryPathError:
        return

    assert prepare_path(prepared) == prepared


@given(st.lists(plain_component, min_size=1, max_size=5))
def test_plain_relative_paths_are_unchanged(parts: list[str]) -> None:
    path = "/".join(parts)

    assert prepare_path(path) == path
    assert prepare_path(f"/{path}") == path
    assert prepare_path(f"./{path}") == path


@given(st.lists(plain_component, min_size=0, max_size=4), plain_component)
def test_climbing_past_root_escapes(parts: list[str], name: str) -> None:
    path = "/".join([*parts, *[".."] * (len(parts) + 1), name])

    try:
        prepare_path(path)
    except RepositoryPathError as e:
        assert e.path is not None
        assert e.path.startswith("..")
    else:
        raise AssertionError(path)
