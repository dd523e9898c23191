"""Local git object database backend.

This module reads and writes a git repository's object database directly
through dulwich. The working tree and index are never touched: commits
build blobs, trees and a commit object and then move a reference.
"""

from __future__ import annotations

import os
import stat
import threading
import time
import weakref
from pathlib import Path
from typing import TYPE_CHECKING, Self

from dulwich.errors import NotGitRepository, NotTreeError
from dulwich.object_store import iter_tree_contents, peel_sha, tree_lookup_path
from dulwich.objects import S_ISGITLINK, Blob, Tree
from dulwich.objects import Commit as CommitObject
from dulwich.repo import Repo

from repostage.exceptions import (
    AuthorMissingError,
    CommitterMissingError,
    ObjectDatabaseError,
    PathConflictError,
    ReferenceConflictError,
    RevisionNotFoundError,
)
from repostage.repository._models import CommitParams, CommitResult, Signature
from repostage.repository._path import prepare_path
from repostage.repository._protocol import Stage
from repostage.repository._revision import Revision, RevisionKind
from repostage.repository.adapters import Cached, Staged
from repostage.utils import create_logger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from os import PathLike as OsPathLike
    from types import TracebackType

    from dulwich.config import StackedConfig
    from dulwich.object_store import BaseObjectStore
    from structlog.typing import FilteringBoundLogger

    from repostage.config import GitConfig
    from repostage.repository._path import PathLike

_DEFAULT_NAME = "repostage"
_DEFAULT_EMAIL = "repostage@localhost"
_BLOB_MODE = 0o100644

# A tree change is a blob SHA to write, None to remove, or a nested change.
type _TreeChange = bytes | None | dict[bytes, _TreeChange]


# =============================================================================
# Repository Handles
# =============================================================================


class _Handle:
    """Owns one thread's ``Repo`` and closes it once the thread-local drops it."""

    __slots__ = ("__weakref__", "_finalizer", "repo")

    def __init__(self, repo: Repo) -> None:
        self.repo: Repo = repo
        self._finalizer: weakref.finalize = weakref.finalize(
            self, repo.close
        )

    def close(self) -> None:
        self._finalizer()


class _RepoHandles:
    """Hands out one dulwich ``Repo`` per thread.

    A thread's handle is closed when the thread exits and its thread-local
    storage is released, so short-lived threads do not accumulate open
    pack and index files. ``close`` releases every handle still alive.
    """

    def __init__(self, path: Path) -> None:
        self.path: Path = path
        self._local: threading.local = threading.local()
        self._live: weakref.WeakSet[_Handle] = weakref.WeakSet()
        self._lock: threading.Lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)

    def get(self) -> Repo:
        handle: _Handle | None = getattr(self._local, "handle", None)
        if handle is None:
            try:
                repo = Repo(str(self.path))
            except NotGitRepository as e:
                msg = f"Not a git repository: {self.path}"
                raise ObjectDatabaseError(msg, path=self.path, cause=e) from e
            handle = _Handle(repo)
            self._local.handle = handle
            with self._lock:
                self._live.add(handle)
        return handle.repo

    def close(self) -> None:
        with self._lock:
            live = list(self._live)
            self._live.clear()
        for handle in live:
            handle.close()
        self._local = threading.local()


def _resolve_commit(repo: Repo, revision: Revision, path: Path) -> bytes | None:
    """Resolve a revision to a commit SHA, peeling annotated tags.

    Returns:
        The commit SHA, or None when HEAD is unborn.

    Raises:
        RevisionNotFoundError: If the revision does not name a commit.
    """
    match revision.kind:
        case RevisionKind.HEAD:
            try:
                sha = repo.refs[b"HEAD"]
            except KeyError:
                return None
        case RevisionKind.SHA:
            sha = revision.value.encode("ascii")
        case RevisionKind.BRANCH | RevisionKind.TAG:
            try:
                sha = repo.refs[str(revision).encode()]
            except KeyError as e:
                msg = f"Reference not found: {revision}"
                raise RevisionNotFoundError(
                    msg, revision=str(revision), path=path, cause=e
                ) from e

    try:
        _, obj = peel_sha(repo.object_store, sha)
    except (KeyError, ValueError) as e:
        msg = f"Object not found: {revision}"
        raise RevisionNotFoundError(
            msg, revision=str(revision), path=path, cause=e
        ) from e

    if not isinstance(obj, CommitObject):
        msg = f"Revision does not name a commit: {revision}"
        raise RevisionNotFoundError(msg, revision=str(revision), path=path)
    return obj.id


# =============================================================================
# Snapshot Reads
# =============================================================================


class _Snapshot:
    """Reads files from the tree of the tracked revision."""

    def __init__(self, handles: _RepoHandles, revision: Revision) -> None:
        self.handles: _RepoHandles = handles
        self.revision: Revision = revision

    def _tree(self) -> bytes | None:
        repo = self.handles.get()
        commit_sha = _resolve_commit(repo, self.revision, self.handles.path)
        if commit_sha is None:
            return None
        commit = repo[commit_sha]
        assert isinstance(commit, CommitObject)  # noqa: S101
        return commit.tree

    def get_file(self, path: PathLike) -> bytes | None:
        path = prepare_path(path)
        tree = self._tree()
        if tree is None:
            return None

        repo = self.handles.get()
        try:
            mode, sha = tree_lookup_path(repo.__getitem__, tree, path.encode())
        except (KeyError, NotTreeError):
            return None
        if stat.S_ISDIR(mode) or S_ISGITLINK(mode):
            return None

        blob = repo[sha]
        return blob.as_raw_string()

    def get_index(self) -> Iterator[str]:
        tree = self._tree()
        if tree is None:
            return iter(())

        store = self.handles.get().object_store
        paths = [
            entry.path.decode()
            for entry in iter_tree_contents(store, tree)
            if entry.path is not None
            and entry.mode is not None
            and not S_ISGITLINK(entry.mode)
        ]
        return iter(sorted(paths))


# =============================================================================
# Tree Editing
# =============================================================================


def _insert_change(
    changes: dict[bytes, _TreeChange], path: str, change: bytes | None
) -> None:
    *parents, name = path.encode().split(b"/")
    current = changes
    for part in parents:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[name] = change


def _write_tree(
    store: BaseObjectStore,
    tree_id: bytes | None,
    changes: dict[bytes, _TreeChange],
) -> bytes | None:
    """Write a copy of a tree with changes applied.

    Existing file modes are kept when a file is overwritten. Removing a
    missing path is a no-op, and subtrees left empty are dropped.

    Returns:
        The new tree SHA, or None if the tree ended up empty.
    """
    tree = Tree()
    if tree_id is not None:
        base = store[tree_id]
        assert isinstance(base, Tree)  # noqa: S101
        for entry in base.iteritems():
            tree.add(entry.path, entry.mode, entry.sha)

    for name, change in changes.items():
        existing = tree[name] if name in tree else None
        if isinstance(change, dict):
            subtree_id = (
                existing[1] if existing and stat.S_ISDIR(existing[0]) else None
            )
            new_subtree = _write_tree(store, subtree_id, change)
            if new_subtree is not None:
                tree.add(name, stat.S_IFDIR, new_subtree)
            elif existing is not None:
                del tree[name]
        elif change is None:
            if existing is not None and not stat.S_ISDIR(existing[0]):
                del tree[name]
        else:
            mode = (
                existing[0]
                if existing is not None and stat.S_ISREG(existing[0])
                else _BLOB_MODE
            )
            tree.add(name, mode, change)

    if not len(tree):
        return None
    store.add_object(tree)
    return tree.id


# =============================================================================
# Git Backend
# =============================================================================


class Git(Stage):
    """A repository backed by a local git object database.

    Reads resolve against the tracked revision. Only SHA revisions are
    cached; switching revisions clears the cache. Committing on HEAD or a
    branch moves that reference with compare-and-swap. Committing on a SHA
    or tag creates a detached commit and tracks its SHA instead.

    Each thread uses its own dulwich handle. The overlay itself is not
    thread-safe.

    Example:
        >>> with Git.open("path/to/repo") as repo:
        ...     _ = repo.add_file("VERSION", "1.2.0\\n")
        ...     result = repo.commit("Bump version")
    """

    def __init__(
        self,
        path: Path,
        *,
        revision: Revision | None = None,
        config: GitConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        revision = revision if revision is not None else Revision.head()
        self._path: Path = path
        self._handles: _RepoHandles = _RepoHandles(path)
        self._snapshot: _Snapshot = _Snapshot(self._handles, revision)
        self._cache: Cached[_Snapshot] = Cached(
            self._snapshot, enabled=revision.is_pinned
        )
        self._staged: Staged[Cached[_Snapshot]] = Staged(self._cache)
        self._default_name: str = config.default_name if config else _DEFAULT_NAME
        self._default_email: str = (
            config.default_email if config else _DEFAULT_EMAIL
        )
        self._logger: FilteringBoundLogger = logger or create_logger(
            "repostage.git"
        )

    @classmethod
    def open(
        cls,
        path: str | OsPathLike[str],
        *,
        revision: Revision | None = None,
        config: GitConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Open an existing repository.

        Args:
            path: Path to the repository's working directory.
            revision: Revision to track (defaults to HEAD).
            config: Optional settings supplying the default identity.
            logger: Optional logger.

        Returns:
            The repository.

        Raises:
            ObjectDatabaseError: If the path is not a git repository.
        """
        repo = cls(Path(path), revision=revision, config=config, logger=logger)
        _ = repo._handles.get()
        return repo

    @classmethod
    def init(
        cls,
        path: str | OsPathLike[str],
        *,
        config: GitConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Create a new repository with an unborn HEAD.

        Args:
            path: Directory to initialize; created if missing.
            config: Optional settings supplying the default identity.
            logger: Optional logger.

        Returns:
            The repository, tracking HEAD.

        Raises:
            ObjectDatabaseError: If the repository cannot be created.
        """
        root = Path(path)
        try:
            root.mkdir(parents=True, exist_ok=True)
            Repo.init(str(root)).close()
        except OSError as e:
            msg = f"Failed to initialize repository: {root}"
            raise ObjectDatabaseError(msg, path=root, cause=e) from e
        return cls.open(root, config=config, logger=logger)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release every dulwich handle opened by this repository."""
        self._handles.close()

    # =========================================================================
    # Revision
    # =========================================================================

    @property
    def path(self) -> Path:
        return self._path

    @property
    def revision(self) -> Revision:
        return self._snapshot.revision

    @property
    def staged(self) -> Staged[Cached[_Snapshot]]:
        return self._staged

    def set_revision(self, revision: Revision) -> None:
        """Track a different revision.

        The read cache is enabled only for SHA revisions and is cleared
        whenever the revision changes.
        """
        if revision != self._snapshot.revision:
            self._cache.clear()
        self._snapshot.revision = revision
        self._cache.enable(revision.is_pinned)

    def with_revision(self, revision: Revision) -> Self:
        """Builder-style variant of ``set_revision``."""
        self.set_revision(revision)
        return self

    def head_sha(self) -> str | None:
        """Return the commit SHA of the tracked revision.

        Returns:
            The SHA hex string, or None when HEAD is unborn.
        """
        sha = _resolve_commit(self._handles.get(), self.revision, self._path)
        return sha.decode("ascii") if sha is not None else None

    # =========================================================================
    # Repository / Stage
    # =========================================================================

    def get_file(self, path: PathLike) -> bytes | None:
        return self._staged.get_file(path)

    def get_index(self) -> Iterator[str]:
        return self._staged.get_index()

    def add_file(self, path: PathLike, data: bytes | str) -> Self:
        _ = self._staged.add_file(path, data)
        return self

    def remove_file(self, path: PathLike) -> bytes | None:
        return self._staged.remove_file(path)

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, params: CommitParams | str | None = None) -> CommitResult:
        """Write staged changes as a new commit.

        Args:
            params: Commit parameters, a bare message, or None.

        Returns:
            The commit result.

        Raises:
            AuthorMissingError: If a detached commit has no author identity.
            CommitterMissingError: If a detached commit has no committer
                identity.
            PathConflictError: If a staged file is also the parent of another
                staged path. Nothing is drained.
            ReferenceConflictError: If the reference moved during the
                commit. The overlay has already been drained.
            RevisionNotFoundError: If the tracked revision cannot be
                resolved.
        """
        if not self._staged.pending:
            return CommitResult.empty()

        conflict = self._staged.find_conflict()
        if conflict is not None:
            msg = f"Staged file is also a directory: {conflict}"
            raise PathConflictError(msg, path=conflict)

        params = CommitParams.coerce(params)
        repo = self._handles.get()
        revision = self.revision

        ref: bytes | None
        base: bytes | None
        match revision.kind:
            case RevisionKind.HEAD:
                refnames, base = repo.refs.follow(b"HEAD")
                ref = refnames[-1]
            case RevisionKind.BRANCH:
                ref = str(revision).encode()
                base = _resolve_commit(repo, revision, self._path)
            case RevisionKind.SHA | RevisionKind.TAG:
                ref = None
                base = _resolve_commit(repo, revision, self._path)

        author, committer = self._identities(repo, params, detached=ref is None)

        base_tree: bytes | None = None
        if base is not None:
            base_commit = repo[base]
            assert isinstance(base_commit, CommitObject)  # noqa: S101
            base_tree = base_commit.tree

        store = repo.object_store
        changes: dict[bytes, _TreeChange] = {}
        paths: list[str] = []
        for path, data in self._staged.drain():
            blob_id: bytes | None = None
            if data is not None:
                blob = Blob.from_string(data)
                store.add_object(blob)
                blob_id = blob.id
            _insert_change(changes, path, blob_id)
            paths.append(path)

        tree_id = _write_tree(store, base_tree, changes)
        if tree_id is None:
            empty = Tree()
            store.add_object(empty)
            tree_id = empty.id

        commit = self._build_commit(tree_id, base, params.message, author, committer)
        store.add_object(commit)
        sha = commit.id.decode("ascii")

        if ref is None:
            self.set_revision(Revision.sha(sha))
        else:
            self._update_ref(repo, ref, base, commit)

        self._logger.info(
            "commit",
            revision=str(revision),
            sha=sha,
            paths=len(paths),
        )
        return CommitResult(sha=sha, paths=tuple(paths), no_changes=False)

    def _identities(
        self, repo: Repo, params: CommitParams, *, detached: bool
    ) -> tuple[Signature, Signature]:
        config = repo.get_config_stack()
        author = params.author or _configured_identity(config, "AUTHOR")
        committer = params.committer or _configured_identity(config, "COMMITTER")

        if detached:
            if author is None:
                msg = "Detached commits require an author identity"
                raise AuthorMissingError(msg, path=self._path)
            if committer is None:
                msg = "Detached commits require a committer identity"
                raise CommitterMissingError(msg, path=self._path)
            return author, committer

        fallback = Signature(self._default_name, self._default_email)
        return author or fallback, committer or fallback

    def _build_commit(
        self,
        tree_id: bytes,
        parent: bytes | None,
        message: str,
        author: Signature,
        committer: Signature,
    ) -> CommitObject:
        now = int(time.time())
        timezone = time.localtime(now).tm_gmtoff

        commit = CommitObject()
        commit.tree = tree_id
        commit.parents = [parent] if parent is not None else []
        commit.author = str(author).encode()
        commit.committer = str(committer).encode()
        commit.author_time = commit.commit_time = now
        commit.author_timezone = commit.commit_timezone = timezone
        commit.encoding = b"UTF-8"
        commit.message = message.encode()
        return commit

    def _update_ref(
        self, repo: Repo, ref: bytes, base: bytes | None, commit: CommitObject
    ) -> None:
        reflog_message = b"commit: " + commit.message.split(b"\n", 1)[0]
        if base is None:
            ok = repo.refs.add_if_new(ref, commit.id, message=reflog_message)
        else:
            ok = repo.refs.set_if_equals(
                ref, base, commit.id, message=reflog_message
            )

        if not ok:
            sha = commit.id.decode("ascii")
            msg = f"{ref.decode()} changed during commit"
            self._logger.warning("ref_conflict", ref=ref.decode(), sha=sha)
            raise ReferenceConflictError(
                msg, ref=ref.decode(), sha=sha, path=self._path
            )


def _configured_identity(config: StackedConfig, kind: str) -> Signature | None:
    """Resolve an identity from ``GIT_<KIND>_*`` variables or user config.

    Unlike dulwich's ``get_user_identity`` this never falls back to the host
    identity, so callers can tell a missing identity apart.
    """
    name = os.environ.get(f"GIT_{kind}_NAME") or _config_value(config, "name")
    email = os.environ.get(f"GIT_{kind}_EMAIL") or _config_value(config, "email")
    if not name or not email:
        return None
    return Signature(name, email.removeprefix("<").removesuffix(">"))


def _config_value(config: StackedConfig, key: str) -> str | None:
    try:
        value = config.get(("user",), key)
    except KeyError:
        return None
    return value.decode() if isinstance(value, bytes) else value
