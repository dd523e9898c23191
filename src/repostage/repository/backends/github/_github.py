"""GitHub REST API backend."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Self
from urllib.parse import quote

from repostage.config import GitHubConfig
from repostage.exceptions import ParseError, PathConflictError, ResponseError
from repostage.repository._models import CommitParams, CommitResult
from repostage.repository._path import prepare_path
from repostage.repository._protocol import Stage
from repostage.repository._revision import Revision, RevisionKind
from repostage.repository.adapters import Cached, Staged
from repostage.repository.backends.github._client import (
    RAW_MEDIA_TYPE,
    GitHubClient,
    JsonObject,
    get_str,
)
from repostage.repository.backends.github._spec import GitHubRepoSpec
from repostage.utils import create_logger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    import httpx
    from structlog.typing import FilteringBoundLogger

    from repostage.repository._models import Signature
    from repostage.repository._path import PathLike

_BLOB_MODE = "100644"
_NOT_FOUND = 404


class _Remote:
    """Reads files from the tracked revision over the REST API."""

    def __init__(self, client: GitHubClient, revision: Revision) -> None:
        self.client: GitHubClient = client
        self.revision: Revision = revision

    def get_file(self, path: PathLike) -> bytes | None:
        path = prepare_path(path)
        try:
            response = self.client.request(
                "GET",
                f"contents/{quote(path)}",
                params={"ref": str(self.revision)},
                accept=RAW_MEDIA_TYPE,
            )
        except ResponseError as e:
            if e.status_code == _NOT_FOUND:
                return None
            raise

        # Directories come back as a JSON listing rather than raw content.
        if response.headers.get("content-type", "").startswith("application/json"):
            return None
        return response.content

    def get_index(self) -> Iterator[str]:
        data = self.client.request_json(
            "GET",
            f"git/trees/{quote(str(self.revision))}",
            params={"recursive": "true"},
        )
        entries = data.get("tree")
        if not isinstance(entries, list):
            msg = "Missing field in response: tree"
            raise ParseError(msg)
        # The recursive listing is capped; a partial index is never returned.
        if data.get("truncated") is True:
            msg = f"Tree listing truncated for revision: {self.revision}"
            raise ParseError(msg)

        paths = [
            get_str(entry, "path")
            for entry in entries  # pyright: ignore[reportUnknownVariableType]
            if isinstance(entry, dict) and entry.get("type") == "blob"  # pyright: ignore[reportUnknownMemberType]
        ]
        return iter(sorted(paths))


class GitHub(Stage):
    """A repository backed by the GitHub REST API.

    Reads resolve against the tracked revision. Only SHA revisions are
    cached; switching revisions clears the cache. A commit uploads blobs one
    at a time, then a tree and a commit, and finally moves the branch. A
    failure part way leaves orphaned objects on the remote and nothing is
    retried.

    Example:
        >>> repo = GitHub.open("octo/widgets").with_authentication_token(token)
        >>> _ = repo.add_file("CHANGELOG.md", changelog)
        >>> repo.commit("Update changelog").sha
        '5f3c...'
    """

    def __init__(
        self,
        spec: GitHubRepoSpec,
        *,
        revision: Revision | None = None,
        config: GitHubConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        revision = revision if revision is not None else Revision.head()
        self._spec: GitHubRepoSpec = spec
        self._logger: FilteringBoundLogger = logger or create_logger(
            "repostage.github"
        )
        self._client: GitHubClient = GitHubClient(
            spec,
            config or GitHubConfig(),
            logger=self._logger,
            transport=transport,
        )
        self._remote: _Remote = _Remote(self._client, revision)
        self._cache: Cached[_Remote] = Cached(self._remote, enabled=revision.is_pinned)
        self._staged: Staged[Cached[_Remote]] = Staged(self._cache)

    @classmethod
    def open(
        cls,
        spec: GitHubRepoSpec | str,
        *,
        revision: Revision | None = None,
        config: GitHubConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Create a backend for a repository.

        No request is sent; use ``validated`` to check access.

        Args:
            spec: Repository spec or ``owner/repo`` string.
            revision: Revision to track (defaults to HEAD).
            config: API settings.
            transport: Optional httpx transport, e.g. for testing.
            logger: Optional logger.

        Returns:
            The repository.

        Raises:
            RepoSpecError: If the spec string is invalid.
        """
        if isinstance(spec, str):
            spec = GitHubRepoSpec.parse(spec)
        return cls(
            spec,
            revision=revision,
            config=config,
            transport=transport,
            logger=logger,
        )

    def with_authentication_token(self, token: str) -> Self:
        """Authenticate subsequent requests with a bearer token."""
        self._client.set_token(token)
        return self

    def validated(self) -> Self:
        """Check that the repository is reachable.

        Returns:
            This repository.

        Raises:
            ResponseError: If the repository cannot be accessed.
            TransportError: If the request fails.
        """
        _ = self._client.request("HEAD")
        return self

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
        """Close the underlying HTTP client."""
        self._client.close()

    # =========================================================================
    # Revision and References
    # =========================================================================

    @property
    def spec(self) -> GitHubRepoSpec:
        return self._spec

    @property
    def revision(self) -> Revision:
        return self._remote.revision

    @property
    def staged(self) -> Staged[Cached[_Remote]]:
        return self._staged

    def set_revision(self, revision: Revision) -> None:
        """Track a different revision.

        The read cache is enabled only for SHA revisions and is cleared
        whenever the revision changes.
        """
        if revision != self._remote.revision:
            self._cache.clear()
        self._remote.revision = revision
        self._cache.enable(revision.is_pinned)

    def with_revision(self, revision: Revision) -> Self:
        """Builder-style variant of ``set_revision``."""
        self.set_revision(revision)
        return self

    def get_default_branch(self) -> str:
        """Return the repository's default branch name."""
        data = self._client.request_json("GET")
        return get_str(data, "default_branch")

    def sha(self) -> str:
        """Return the commit SHA of the tracked revision."""
        commit_sha, _ = self._resolve_base()
        return commit_sha

    def create_branch(self, name: str) -> None:
        """Create a branch at the tracked revision."""
        sha = self.sha()
        _ = self._client.request_json(
            "POST", "git/refs", json={"ref": f"refs/heads/{name}", "sha": sha}
        )
        self._logger.info("create_branch", branch=name, sha=sha)

    def update_branch(self, name: str, sha: str) -> None:
        """Move a branch to a commit."""
        _ = self._client.request_json(
            "PATCH", f"git/refs/heads/{quote(name)}", json={"sha": sha}
        )
        self._logger.info("update_branch", branch=name, sha=sha)

    def _resolve_base(self) -> tuple[str, str]:
        """Resolve the tracked revision to its commit and tree SHAs."""
        revision = self.revision
        match revision.kind:
            case RevisionKind.HEAD:
                data = self._client.request_json("GET", "commits/HEAD")
                return get_str(data, "sha"), get_str(data, "commit", "tree", "sha")
            case RevisionKind.SHA:
                sha = revision.value
            case RevisionKind.BRANCH | RevisionKind.TAG:
                ref = self._client.request_json(
                    "GET", f"git/ref/{quote(str(revision).removeprefix('refs/'))}"
                )
                sha = get_str(ref, "object", "sha")
                kind = get_str(ref, "object", "type")
                while kind == "tag":
                    tag = self._client.request_json("GET", f"git/tags/{sha}")
                    sha = get_str(tag, "object", "sha")
                    kind = get_str(tag, "object", "type")

        data = self._client.request_json("GET", f"git/commits/{sha}")
        return get_str(data, "sha"), get_str(data, "tree", "sha")

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
        """Write staged changes as a new commit on the remote.

        Args:
            params: Commit parameters, a bare message, or None.

        Returns:
            The commit result.

        Raises:
            ResponseError: If any request is rejected.
            TransportError: If any request fails.
            ParseError: If a response has an unexpected shape.
            PathConflictError: If a staged file is also the parent of another
                staged path. Nothing is sent.
        """
        if not self._staged.pending:
            return CommitResult.empty()

        conflict = self._staged.find_conflict()
        if conflict is not None:
            msg = f"Staged file is also a directory: {conflict}"
            raise PathConflictError(msg, path=conflict)

        params = CommitParams.coerce(params)
        revision = self.revision
        parent, base_tree = self._resolve_base()

        entries: list[JsonObject] = []
        paths: list[str] = []
        for path, data in self._staged.drain():
            entries.append(
                {
                    "path": path,
                    "mode": _BLOB_MODE,
                    "type": "blob",
                    "sha": self._create_blob(data) if data is not None else None,
                }
            )
            paths.append(path)

        tree = self._client.request_json(
            "POST", "git/trees", json={"base_tree": base_tree, "tree": entries}
        )

        body: JsonObject = {
            "message": params.message,
            "tree": get_str(tree, "sha"),
            "parents": [parent],
        }
        if params.author is not None:
            body["author"] = _signature_json(params.author)
        if params.committer is not None:
            body["committer"] = _signature_json(params.committer)
        commit = self._client.request_json("POST", "git/commits", json=body)
        sha = get_str(commit, "sha")

        match revision.kind:
            case RevisionKind.HEAD:
                self.update_branch(self.get_default_branch(), sha)
            case RevisionKind.BRANCH:
                self.update_branch(revision.value, sha)
            case RevisionKind.SHA | RevisionKind.TAG:
                self.set_revision(Revision.sha(sha))

        self._logger.info(
            "commit",
            repository=str(self._spec),
            revision=str(revision),
            sha=sha,
            paths=len(paths),
        )
        return CommitResult(sha=sha, paths=tuple(paths), no_changes=False)

    def _create_blob(self, data: bytes) -> str:
        try:
            body = {"content": data.decode("utf-8"), "encoding": "utf-8"}
        except UnicodeDecodeError:
            body = {
                "content": base64.b64encode(data).decode("ascii"),
                "encoding": "base64",
            }
        blob = self._client.request_json("POST", "git/blobs", json=body)
        return get_str(blob, "sha")


def _signature_json(signature: Signature) -> JsonObject:
    return {"name": signature.name, "email": signature.email}
