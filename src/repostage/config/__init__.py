"""Configuration models and loading.

Example:
    >>> from repostage.config import load_config
    >>> config = load_config("repostage.toml")
    >>> config.github.api_url
    'https://api.github.com'
"""

from repostage.config._loader import (
    deep_merge,
    load_config,
    parse_env_vars,
    read_toml_file,
)
from repostage.config._models import (
    Config,
    GitConfig,
    GitHubConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "Config",
    "GitConfig",
    "GitHubConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
