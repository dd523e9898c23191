# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and environment overrides."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from repostage.config._models import Config
from repostage.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "REPOSTAGE_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Dictionaries are merged recursively; any other override value replaces
    the base value. Neither input is modified.

    Args:
        base: Base configuration (lower precedence).
        override: Override configuration (higher precedence).

    Returns:
        Merged configuration dictionary.
    """
    result: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def set_nested_key(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: object,
) -> None:
    """Set a value in a nested dictionary using a dot-separated path.

    Args:
        data: Dictionary to modify in place.
        key_path: Dot-separated key path, e.g. ``github.token``.
        value: Value to set.
    """
    *parents, leaf = key_path.split(".")
    current = data
    for part in parents:
        current = current.setdefault(part, {})
    current[leaf] = value


def parse_env_vars(
    env: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a config dictionary.

    Nested keys use double underscores, e.g. ``REPOSTAGE_GITHUB__TIMEOUT``
    sets ``github.timeout``. A few shorthands are also recognized:

    - ``REPOSTAGE_LOG_LEVEL`` sets ``logging.level``
    - ``REPOSTAGE_DEBUG`` (any non-empty value) sets ``logging.level`` to debug
    - ``REPOSTAGE_GITHUB_TOKEN`` or ``GITHUB_TOKEN`` sets ``github.token``
    - ``REPOSTAGE_GITHUB_API_URL`` sets ``github.api_url``

    Args:
        env: Environment mapping (defaults to ``os.environ``).
        prefix: Environment variable prefix.

    Returns:
        Dictionary of config values with nested structure.
    """
    environ = os.environ if env is None else env
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in environ.items():
        if not key.startswith(prefix) or "__" not in key:
            continue
        config_path = key.removeprefix(prefix).replace("__", ".").lower()
        set_nested_key(result, config_path, value)

    token = environ.get(f"{prefix}GITHUB_TOKEN") or environ.get("GITHUB_TOKEN")
    if token:
        set_nested_key(result, "github.token", token)
    if api_url := environ.get(f"{prefix}GITHUB_API_URL"):
        set_nested_key(result, "github.api_url", api_url)
    if level := environ.get(f"{prefix}LOG_LEVEL"):
        set_nested_key(result, "logging.level", level.lower())
    if environ.get(f"{prefix}DEBUG"):
        set_nested_key(result, "logging.level", "debug")

    return result


def load_config(
    path: Path | str | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from defaults, a TOML file and the environment.

    Args:
        path: Optional TOML file; a missing file is an error.
        env: Environment mapping (defaults to ``os.environ``).

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigLoadError: If the file cannot be parsed or fails validation.
    """
    data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    file_path = Path(path) if path is not None else None
    if file_path is not None:
        data = read_toml_file(file_path)

    data = deep_merge(data, parse_env_vars(env))

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigLoadError(msg, path=file_path) from e
