"""Thin GitHub REST client scoped to one repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import orjson

from repostage.exceptions import ParseError, ResponseError, TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from structlog.typing import FilteringBoundLogger

    from repostage.config import GitHubConfig
    from repostage.repository.backends.github._spec import GitHubRepoSpec

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw"

type JsonObject = dict[str, Any]  # pyright: ignore[reportExplicitAny]


class GitHubClient:
    """Sends requests under ``{api_url}/repos/{owner}/{repo}``.

    Every request carries the configured User-Agent, the JSON media type,
    the API version header and, when a token is set, bearer authorization.
    Requests are never retried.
    """

    def __init__(
        self,
        spec: GitHubRepoSpec,
        config: GitHubConfig,
        *,
        logger: FilteringBoundLogger,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url: str = (
            f"{config.api_url.rstrip('/')}/repos/{spec.owner}/{spec.repo}"
        )
        self._logger: FilteringBoundLogger = logger
        self._client: httpx.Client = httpx.Client(
            headers={
                "User-Agent": config.user_agent,
                "Accept": JSON_MEDIA_TYPE,
                "X-GitHub-Api-Version": config.api_version,
            },
            timeout=config.timeout,
            transport=transport,
            follow_redirects=True,
        )
        if config.token:
            self.set_token(config.token)

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: str) -> None:
        """Authenticate subsequent requests with a bearer token."""
        self._client.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str = "",
        *,
        json: object | None = None,
        params: Mapping[str, str] | None = None,
        accept: str | None = None,
    ) -> httpx.Response:
        """Send a request relative to the repository URL.

        Args:
            method: HTTP method.
            path: Path below the repository URL; empty for the repository.
            json: Optional body, serialized with orjson.
            params: Optional query parameters.
            accept: Optional Accept header override.

        Returns:
            The successful response.

        Raises:
            TransportError: If no response was received.
            ResponseError: If the response status is not successful.
        """
        url = f"{self._base_url}/{path}" if path else self._base_url
        headers: dict[str, str] = {}
        if accept is not None:
            headers["Accept"] = accept
        content: bytes | None = None
        if json is not None:
            content = orjson.dumps(json)
            headers["Content-Type"] = "application/json"

        self._logger.debug("github_request", method=method, url=url)
        try:
            response = self._client.request(
                method, url, params=params, content=content, headers=headers
            )
        except httpx.TransportError as e:
            msg = f"Request failed: {method} {url}: {e}"
            raise TransportError(msg, cause=e) from e

        if not response.is_success:
            self._logger.warning(
                "github_response_error",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise ResponseError(response.status_code, url=url)
        return response

    def request_json(
        self,
        method: str,
        path: str = "",
        *,
        json: object | None = None,
        params: Mapping[str, str] | None = None,
    ) -> JsonObject:
        """Send a request and decode a JSON object response.

        Raises:
            ParseError: If the body is not a JSON object.
        """
        response = self.request(method, path, json=json, params=params)
        try:
            data: object = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON response from {method} {path or '/'}"
            raise ParseError(msg) from e
        if not isinstance(data, dict):
            msg = f"Expected a JSON object from {method} {path or '/'}"
            raise ParseError(msg)
        return data  # pyright: ignore[reportUnknownVariableType]


def get_str(data: JsonObject, *keys: str) -> str:
    """Read a nested string field from a JSON object.

    Args:
        data: The decoded response.
        *keys: Path of keys to follow.

    Returns:
        The string value.

    Raises:
        ParseError: If a key is missing or the value is not a string.
    """
    value: object = data
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            msg = f"Missing field in response: {'.'.join(keys)}"
            raise ParseError(msg)
        value = value[key]  # pyright: ignore[reportUnknownVariableType]
    if not isinstance(value, str):
        msg = f"Expected a string at {'.'.join(keys)}"
        raise ParseError(msg)
    return value
